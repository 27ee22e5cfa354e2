"""Tests for Lighter feed, market and history parsing, and LighterClient requests."""

from unittest.mock import AsyncMock

import pytest

from monitor.exchange.lighter_client import (
    LIGHTER_HISTORY_URL,
    LighterClient,
    parse_history_points,
    parse_lighter_feed,
    parse_lighter_markets,
)
from monitor.models import ExchangeId

FEED = [
    {"market_id": 1, "exchange": "lighter", "symbol": "BTC", "rate": 0.0001},
    {"market_id": 2, "exchange": "lighter", "symbol": "ETH", "rate": "-0.00002"},
    {"market_id": 0, "exchange": "hyperliquid", "symbol": "BTC", "rate": 0.00012},
    {"market_id": 0, "exchange": "hyperliquid", "symbol": "kPEPE", "rate": 0.0003},
    {"market_id": 0, "exchange": "binance", "symbol": "BTCUSDT", "rate": 0.0001},
    {"market_id": 3, "exchange": "lighter", "symbol": "BAD", "rate": None},
]


class TestParseLighterFeed:
    def test_splits_by_venue_and_ignores_others(self) -> None:
        rates = parse_lighter_feed(FEED)
        assert rates[ExchangeId.LIGHTER] == {"BTC": 0.0001, "ETH": pytest.approx(-0.00002)}
        assert rates[ExchangeId.HYPERLIQUID] == {"BTC": 0.00012, "1000PEPE": 0.0003}
        assert ExchangeId.BINANCE not in rates

    def test_hourly_native_interval_scales_lighter_only(self) -> None:
        rates = parse_lighter_feed(FEED, native_interval_hours=1)
        assert rates[ExchangeId.LIGHTER]["BTC"] == pytest.approx(0.0008)
        assert rates[ExchangeId.HYPERLIQUID]["BTC"] == 0.00012

    def test_garbage_payload_gives_empty_maps(self) -> None:
        rates = parse_lighter_feed("nope")
        assert rates == {ExchangeId.LIGHTER: {}, ExchangeId.HYPERLIQUID: {}}


class TestParseLighterMarkets:
    def test_only_lighter_markets_with_ids(self) -> None:
        markets = parse_lighter_markets(FEED)
        assert [(m.market_id, m.symbol) for m in markets] == [(1, "BTC"), (2, "ETH"), (3, "BAD")]
        assert markets[0].current_rate == 0.0001
        assert markets[2].current_rate is None


class TestParseHistoryPoints:
    def test_reads_fundings_list(self) -> None:
        payload = {
            "fundings": [
                {"timestamp": 1700003600, "rate": "0.02", "direction": "short", "value": "1.5"},
                {"timestamp": "1700000000", "rate": "0.01", "direction": "long"},
                {"rate": "0.5"},
            ]
        }
        points = parse_history_points(payload)
        assert [p.timestamp for p in points] == [1700003600, 1700000000]
        assert points[0].direction == "short"
        assert points[1].value is None

    def test_missing_fundings_is_empty(self) -> None:
        assert parse_history_points({"code": 200}) == []
        assert parse_history_points([]) == []

    def test_non_list_fundings_is_empty(self) -> None:
        assert parse_history_points({"fundings": 5}) == []
        assert parse_history_points({"fundings": {"timestamp": 1}}) == []


class TestLighterClient:
    @pytest.mark.asyncio
    async def test_fetch_funding_rates_uses_feed(self) -> None:
        client = LighterClient()
        client._http.get_json = AsyncMock(return_value={"funding_rates": FEED})  # type: ignore[method-assign]

        rates = await client.fetch_funding_rates()

        assert set(rates) == {ExchangeId.LIGHTER, ExchangeId.HYPERLIQUID}
        assert rates[ExchangeId.LIGHTER]["BTC"] == 0.0001

    @pytest.mark.asyncio
    async def test_fetch_funding_history_sends_window(self) -> None:
        client = LighterClient()
        client._http.get_json = AsyncMock(return_value={"fundings": []})  # type: ignore[method-assign]

        await client.fetch_funding_history(7, lookback_seconds=3600, count_back=168)

        url, what = client._http.get_json.await_args.args
        params = client._http.get_json.await_args.kwargs["params"]
        assert url == LIGHTER_HISTORY_URL
        assert params["market_id"] == 7
        assert params["resolution"] == "1h"
        assert params["count_back"] == 168
        assert params["end_timestamp"] - params["start_timestamp"] == 3600
