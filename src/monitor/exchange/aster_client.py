"""Aster perpetual funding source (Binance-compatible REST API)."""

import asyncio

from monitor.exchange.client import ExchangeClient, RatesBySource
from monitor.exchange.http import JsonHttpClient
from monitor.exchange.premium_index import parse_funding_info, parse_premium_index
from monitor.logging import get_logger
from monitor.models import ExchangeId

logger = get_logger(__name__)

ASTER_PREMIUM_INDEX_URL = "https://fapi.asterdex.com/fapi/v1/premiumIndex"
ASTER_FUNDING_INFO_URL = "https://fapi.asterdex.com/fapi/v1/fundingInfo"


class AsterClient(ExchangeClient):
    """Aster funding rates normalized to 8h.

    Zero rates are genuine on Aster and are kept.
    """

    exchanges = (ExchangeId.ASTER,)

    def __init__(self, timeout: float = 10.0) -> None:
        self._http = JsonHttpClient("Aster", timeout=timeout)

    async def connect(self) -> None:
        logger.info("aster_client_ready")

    async def close(self) -> None:
        await self._http.close()

    async def fetch_funding_rates(self) -> RatesBySource:
        premium, info = await asyncio.gather(
            self._http.get_json(ASTER_PREMIUM_INDEX_URL, "premiumIndex"),
            self._http.get_json(ASTER_FUNDING_INFO_URL, "fundingInfo"),
        )
        rates = parse_premium_index(premium, parse_funding_info(info))
        logger.debug("aster_rates_parsed", count=len(rates))
        return {ExchangeId.ASTER: rates}
