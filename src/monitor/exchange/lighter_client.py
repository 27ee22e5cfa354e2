"""Lighter funding source: current rates feed and per-market funding history.

The funding-rates endpoint returns entries for several venues in one payload,
each tagged with an `exchange` field:
  - "lighter" entries fill the Lighter slot
  - "hyperliquid" entries fill the Hyperliquid slot, with Hyperliquid's
    kPEPE-style shorthand rewritten to 1000PEPE
  - anything else (e.g. "binance") is ignored; Binance is fetched directly

History points carry an unsigned rate and a long/short direction.
"""

import time
from typing import Any

from monitor.exchange.client import ExchangeClient, RatesBySource
from monitor.exchange.http import JsonHttpClient
from monitor.logging import get_logger
from monitor.market_data.normalizer import normalize, parse_number
from monitor.models import ExchangeId, FundingHistoryPoint, HistoryMarket

logger = get_logger(__name__)

LIGHTER_BASE_URL = "https://mainnet.zklighter.elliot.ai/api/v1"
LIGHTER_FUNDING_URL = f"{LIGHTER_BASE_URL}/funding-rates"
LIGHTER_HISTORY_URL = f"{LIGHTER_BASE_URL}/fundings"


def parse_lighter_feed(
    entries: Any, native_interval_hours: float = 8
) -> RatesBySource:
    """Split the multi-venue funding feed into Lighter and Hyperliquid maps."""
    rates: RatesBySource = {ExchangeId.LIGHTER: {}, ExchangeId.HYPERLIQUID: {}}
    if not isinstance(entries, list):
        return rates

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        venue = str(entry.get("exchange") or "").lower()
        raw_symbol = str(entry.get("symbol") or "")

        if venue == ExchangeId.LIGHTER.value:
            normalized = normalize(raw_symbol, entry.get("rate"), native_interval_hours)
        elif venue == ExchangeId.HYPERLIQUID.value:
            normalized = normalize(raw_symbol, entry.get("rate"), thousand_prefix=True)
        else:
            continue

        if normalized is None:
            continue
        symbol, rate = normalized
        rates[ExchangeId(venue)][symbol] = rate

    return rates


def parse_lighter_markets(entries: Any) -> list[HistoryMarket]:
    """Extract Lighter markets (id, symbol, current rate) from the feed."""
    markets: list[HistoryMarket] = []
    if not isinstance(entries, list):
        return markets
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if str(entry.get("exchange") or "").lower() != ExchangeId.LIGHTER.value:
            continue
        market_id = parse_number(entry.get("market_id"))
        symbol = entry.get("symbol")
        if market_id is None or not symbol:
            continue
        markets.append(
            HistoryMarket(
                market_id=int(market_id),
                symbol=str(symbol),
                current_rate=parse_number(entry.get("rate")),
            )
        )
    return markets


def parse_history_points(payload: Any) -> list[FundingHistoryPoint]:
    """Convert a fundings response into raw history points."""
    if not isinstance(payload, dict):
        return []
    fundings = payload.get("fundings")
    if not isinstance(fundings, list):
        return []
    points: list[FundingHistoryPoint] = []
    for item in fundings:
        if not isinstance(item, dict):
            continue
        timestamp = parse_number(item.get("timestamp"))
        if timestamp is None:
            continue
        points.append(
            FundingHistoryPoint(
                timestamp=int(timestamp),
                rate=item.get("rate"),
                direction=item.get("direction"),
                value=item.get("value"),
            )
        )
    return points


class LighterClient(ExchangeClient):
    """Lighter REST client feeding the Lighter and Hyperliquid slots.

    Args:
        timeout: Total request timeout in seconds.
        native_interval_hours: Funding interval of Lighter's own rates.
            Set to 1 when the feed reports hourly rates.
    """

    exchanges = (ExchangeId.LIGHTER, ExchangeId.HYPERLIQUID)

    def __init__(self, timeout: float = 10.0, native_interval_hours: float = 8) -> None:
        self._http = JsonHttpClient("Lighter", timeout=timeout)
        self._native_interval_hours = native_interval_hours

    async def connect(self) -> None:
        logger.info("lighter_client_ready", native_interval_hours=self._native_interval_hours)

    async def close(self) -> None:
        await self._http.close()

    async def _fetch_feed(self) -> list:
        payload = await self._http.get_json(LIGHTER_FUNDING_URL, "funding")
        if not isinstance(payload, dict):
            return []
        return payload.get("funding_rates") or []

    async def fetch_funding_rates(self) -> RatesBySource:
        rates = parse_lighter_feed(await self._fetch_feed(), self._native_interval_hours)
        logger.debug(
            "lighter_rates_parsed",
            lighter=len(rates[ExchangeId.LIGHTER]),
            hyperliquid=len(rates[ExchangeId.HYPERLIQUID]),
        )
        return rates

    async def fetch_markets(self) -> list[HistoryMarket]:
        """Return Lighter markets with their current reported rate."""
        return parse_lighter_markets(await self._fetch_feed())

    async def fetch_funding_history(
        self,
        market_id: int,
        lookback_seconds: int,
        count_back: int,
        resolution: str = "1h",
    ) -> list[FundingHistoryPoint]:
        """Fetch funding points for one market over the lookback window."""
        now = int(time.time())
        payload = await self._http.get_json(
            LIGHTER_HISTORY_URL,
            "funding history",
            params={
                "market_id": market_id,
                "resolution": resolution,
                "start_timestamp": now - lookback_seconds,
                "end_timestamp": now,
                "count_back": count_back,
            },
        )
        return parse_history_points(payload)
