"""Exchange client layer -- funding-rate sources via ccxt and aiohttp."""

from monitor.exchange.aster_client import AsterClient
from monitor.exchange.binance_client import BinanceClient
from monitor.exchange.client import ExchangeClient, RatesBySource
from monitor.exchange.edgex_client import EdgexClient
from monitor.exchange.grvt_client import GrvtClient
from monitor.exchange.lighter_client import LighterClient

__all__ = [
    "AsterClient",
    "BinanceClient",
    "EdgexClient",
    "ExchangeClient",
    "GrvtClient",
    "LighterClient",
    "RatesBySource",
]
