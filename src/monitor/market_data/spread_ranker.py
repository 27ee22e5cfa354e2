"""Top-spread ranking across exchanges for each joined symbol.

For each row, the widest available spread is:
  high = exchange with the highest 8h rate
  low  = exchange with the lowest 8h rate
  diff = high.rate - low.rate
  estimated_profit = principal_usd * diff   (per funding cycle, if principal given)

Ties are broken by exchange priority: rates are scanned in priority order
with a strict comparison, so the first maximal/minimal exchange wins.
"""

from collections.abc import Iterable

from monitor.models import ExchangeId, RateQuote, SpreadEntry, TableRow, ordered_exchanges


class SpreadRanker:
    """Ranks symbols by the absolute spread between their best and worst rates.

    Args:
        exchanges: Exchanges to consider when picking high/low. Defaults to
            every exchange present in each row.
    """

    def __init__(self, exchanges: Iterable[ExchangeId] | None = None) -> None:
        self._exchanges = ordered_exchanges(exchanges) if exchanges is not None else None

    def top_spreads(
        self,
        rows: list[TableRow],
        limit: int,
        principal_usd: float | None = None,
    ) -> list[SpreadEntry]:
        """Return the `limit` widest spreads, widest first.

        Rows with fewer than two available rates, or where all rates are
        equal, never produce an entry.
        """
        entries: list[SpreadEntry] = []

        for row in rows:
            available = self._available_rates(row)
            if len(available) < 2:
                continue

            high = available[0]
            low = available[0]
            for quote in available[1:]:
                if quote.rate > high.rate:
                    high = quote
                if quote.rate < low.rate:
                    low = quote

            diff = high.rate - low.rate
            if diff <= 0:
                continue

            estimated_profit = None
            if principal_usd is not None and principal_usd > 0:
                estimated_profit = principal_usd * diff

            entries.append(
                SpreadEntry(
                    symbol=row.symbol,
                    diff=diff,
                    high=high,
                    low=low,
                    estimated_profit=estimated_profit,
                )
            )

        # sort() is stable, so equal spreads keep row order
        entries.sort(key=lambda e: abs(e.diff), reverse=True)
        return entries[: max(limit, 0)]

    def _available_rates(self, row: TableRow) -> list[RateQuote]:
        """Return the present (exchange, rate) pairs in priority order."""
        exchanges = self._exchanges if self._exchanges is not None else ordered_exchanges(row.rates)
        return [
            RateQuote(exchange=exchange, rate=row.rates[exchange])
            for exchange in exchanges
            if exchange in row.rates
        ]
