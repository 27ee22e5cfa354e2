"""Funding join engine -- merges per-exchange rate maps into table rows.

For every symbol reported by any enabled exchange:
  1. Collect the 8h rate from each enabled exchange that has one
  2. Keep the row only if enough distinct exchanges reported it
  3. For every pair (X, Y) of enabled exchanges, X before Y in priority,
     store X_Y_arb = rate(X) - rate(Y) when both are present

Pure and synchronous: the full row set is rebuilt from current slot
contents on every call.
"""

import math
from collections.abc import Iterable, Mapping

from monitor.models import ExchangeId, TableRow, exchange_pairs, ordered_exchanges

RateMaps = Mapping[ExchangeId, Mapping[str, float]]


class FundingJoinEngine:
    """Joins per-exchange funding rate maps by canonical symbol.

    Args:
        min_sources: Minimum number of distinct exchanges that must report a
            rate for a symbol to produce a row.
        required_exchanges: Exchanges that must all be present in a row,
            on top of the minimum count.
    """

    def __init__(
        self,
        min_sources: int = 2,
        required_exchanges: Iterable[ExchangeId] = (),
    ) -> None:
        if min_sources < 1:
            raise ValueError(f"min_sources must be >= 1, got {min_sources}")
        self._min_sources = min_sources
        self._required = frozenset(required_exchanges)

    @property
    def min_sources(self) -> int:
        return self._min_sources

    def join(
        self,
        rate_maps: RateMaps,
        enabled: Iterable[ExchangeId],
        contracts: Mapping[str, tuple[str, str]] | None = None,
    ) -> list[TableRow]:
        """Build one row per symbol that passes the inclusion policy.

        Args:
            rate_maps: Exchange -> {canonical symbol: 8h rate}.
            enabled: Exchanges to consider; maps for others are ignored.
            contracts: Optional symbol -> (contract_id, contract_name) used to
                annotate rows (edgeX contract metadata).

        Returns:
            Rows in first-seen order (priority order of exchanges, then each
            map's insertion order). Order carries no meaning.
        """
        exchanges = ordered_exchanges(enabled)
        pairs = exchange_pairs(exchanges)
        contracts = contracts or {}

        symbols: dict[str, None] = {}
        for exchange in exchanges:
            for symbol in rate_maps.get(exchange, {}):
                symbols.setdefault(symbol, None)

        rows: list[TableRow] = []
        for symbol in symbols:
            rates: dict[ExchangeId, float] = {}
            for exchange in exchanges:
                value = rate_maps.get(exchange, {}).get(symbol)
                if value is not None and math.isfinite(value):
                    rates[exchange] = value

            if len(rates) < self._min_sources:
                continue
            if not self._required.issubset(rates):
                continue

            arbs = {
                (first, second): rates[first] - rates[second]
                for first, second in pairs
                if first in rates and second in rates
            }

            contract_id, contract_name = contracts.get(symbol, (None, None))
            rows.append(
                TableRow(
                    symbol=symbol,
                    rates=rates,
                    arbs=arbs,
                    contract_id=contract_id,
                    contract_name=contract_name,
                )
            )

        return rows
