"""Tests for GRVT instrument and funding parsing."""

from unittest.mock import AsyncMock

import pytest

from monitor.exceptions import SourceFetchError
from monitor.exchange.grvt_client import GrvtClient, parse_grvt_instruments, parse_grvt_point
from monitor.models import ExchangeId

INSTRUMENTS = {
    "result": [
        {"instrument": "BTC_USDT_Perp", "base": "BTC", "quote": "USDT"},
        {"instrument": "ETH_USDT_Perp"},
        {"base": "NOPE"},
    ]
}


class TestParsers:
    def test_instruments_use_base_or_instrument_prefix(self) -> None:
        assert parse_grvt_instruments(INSTRUMENTS) == [
            ("BTC_USDT_Perp", "BTC"),
            ("ETH_USDT_Perp", "ETH"),
        ]

    def test_instruments_without_result(self) -> None:
        assert parse_grvt_instruments({"error": "x"}) == []

    def test_point_is_percentage_points(self) -> None:
        assert parse_grvt_point({"funding_rate": "0.01"}) == pytest.approx(0.0001)

    def test_point_interval_is_normalized(self) -> None:
        point = {"funding_rate": 0.01, "funding_interval_hours": 4}
        assert parse_grvt_point(point) == pytest.approx(0.0002)

    def test_bad_point(self) -> None:
        assert parse_grvt_point({"funding_rate": None}) is None


class TestGrvtClient:
    @pytest.mark.asyncio
    async def test_sweep_keeps_listed_rates(self) -> None:
        client = GrvtClient(fetch_gap=0)

        async def post_json(url: str, what: str, payload: dict) -> dict:
            if url.endswith("/instruments"):
                return INSTRUMENTS
            if payload["instrument"] == "ETH_USDT_Perp":
                raise SourceFetchError("GRVT funding for ETH_USDT_Perp request failed: 429")
            return {"result": [{"funding_rate": "0.02"}]}

        client._http.post_json = AsyncMock(side_effect=post_json)  # type: ignore[method-assign]
        client._rates["OLD"] = 0.5

        rates = await client.fetch_funding_rates()

        assert rates == {ExchangeId.GRVT: {"BTC": pytest.approx(0.0002)}}
        assert client.partial_error == "GRVT funding for ETH_USDT_Perp request failed: 429"
