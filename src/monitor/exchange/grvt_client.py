"""GRVT funding source: active USDT perpetuals plus per-instrument funding.

GRVT reports funding_rate in percentage points (0.01 == 0.01%), so values
are divided by 100 before interval normalization.
"""

from typing import Any

from monitor.exchange.client import ExchangeClient, RatesBySource
from monitor.exchange.http import JsonHttpClient
from monitor.exchange.sweep import sweep
from monitor.logging import get_logger
from monitor.market_data.normalizer import canonical_symbol, normalize_rate, parse_number
from monitor.models import ExchangeId

logger = get_logger(__name__)

GRVT_BASE_URL = "https://market-data.grvt.io/full/v1"


def parse_grvt_instruments(payload: Any) -> list[tuple[str, str]]:
    """Return (instrument, canonical symbol) for each listed instrument."""
    result = payload.get("result") if isinstance(payload, dict) else None
    if not isinstance(result, list):
        return []
    instruments: list[tuple[str, str]] = []
    for item in result:
        if not isinstance(item, dict) or not item.get("instrument"):
            continue
        instrument = str(item["instrument"])
        base = item.get("base") or instrument.split("_")[0]
        instruments.append((instrument, canonical_symbol(str(base))))
    return instruments


def parse_grvt_point(point: Any) -> float | None:
    """Return the 8h-equivalent fractional rate from a funding point."""
    if not isinstance(point, dict):
        return None
    percent = parse_number(point.get("funding_rate"))
    if percent is None:
        return None
    return normalize_rate(percent / 100, point.get("funding_interval_hours"))


class GrvtClient(ExchangeClient):
    """GRVT REST client with sequential per-instrument funding sweeps."""

    exchanges = (ExchangeId.GRVT,)

    def __init__(self, timeout: float = 10.0, fetch_gap: float = 0.5) -> None:
        self._http = JsonHttpClient("GRVT", timeout=timeout)
        self._fetch_gap = fetch_gap
        self._rates: dict[str, float] = {}

    async def connect(self) -> None:
        logger.info("grvt_client_ready")

    async def close(self) -> None:
        await self._http.close()

    async def _fetch_point(self, instrument: tuple[str, str]) -> float | None:
        name, _ = instrument
        payload = await self._http.post_json(
            f"{GRVT_BASE_URL}/funding",
            f"funding for {name}",
            {"instrument": name, "limit": 1},
        )
        result = payload.get("result") if isinstance(payload, dict) else None
        point = result[0] if isinstance(result, list) and result else None
        return parse_grvt_point(point)

    async def fetch_funding_rates(self) -> RatesBySource:
        payload = await self._http.post_json(
            f"{GRVT_BASE_URL}/instruments",
            "instruments",
            {"kind": ["PERPETUAL"], "quote": ["USDT"], "is_active": True},
        )
        instruments = parse_grvt_instruments(payload)

        results, last_error = await sweep(instruments, self._fetch_point, self._fetch_gap)
        for (_, symbol), rate in results:
            self._rates[symbol] = rate
        self.partial_error = last_error

        listed = {symbol for _, symbol in instruments}
        rates = {symbol: rate for symbol, rate in self._rates.items() if symbol in listed}
        logger.debug("grvt_sweep_complete", instruments=len(instruments), fetched=len(results))
        return {ExchangeId.GRVT: rates}
