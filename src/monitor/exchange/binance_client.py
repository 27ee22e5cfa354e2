"""Binance USD-M futures funding source via ccxt async.

Uses ccxt's implicit raw endpoints (premiumIndex, fundingInfo) rather than
the unified fetch_funding_rates so the nextFundingTime/sentinel filtering
can be applied to the exchange's own fields.
"""

import asyncio

import ccxt.async_support as ccxt_async

from monitor.exceptions import SourceFetchError
from monitor.exchange.client import ExchangeClient, RatesBySource
from monitor.exchange.premium_index import parse_funding_info, parse_premium_index
from monitor.logging import get_logger
from monitor.models import ExchangeId

logger = get_logger(__name__)


class BinanceClient(ExchangeClient):
    """Binance perpetual funding rates normalized to 8h."""

    exchanges = (ExchangeId.BINANCE,)

    def __init__(self, timeout: float = 10.0) -> None:
        self._exchange = ccxt_async.binance(
            {
                "enableRateLimit": True,
                "timeout": int(timeout * 1000),
                "options": {"defaultType": "future"},
            }
        )

    @property
    def exchange(self) -> ccxt_async.binance:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    async def connect(self) -> None:
        # Public endpoints only; no markets needed
        logger.info("binance_client_ready")

    async def close(self) -> None:
        """Clean up ccxt async resources."""
        await self._exchange.close()
        logger.info("binance_connection_closed")

    async def fetch_funding_rates(self) -> RatesBySource:
        try:
            premium, info = await asyncio.gather(
                self._exchange.fapiPublicGetPremiumIndex(),
                self._exchange.fapiPublicGetFundingInfo(),
            )
        except ccxt_async.BaseError as e:
            raise SourceFetchError(f"Binance premiumIndex request failed: {e}") from e

        rates = parse_premium_index(
            premium,
            parse_funding_info(info),
            skip_unscheduled=True,
            zero_sentinel=True,
        )
        logger.debug("binance_rates_parsed", count=len(rates))
        return {ExchangeId.BINANCE: rates}
