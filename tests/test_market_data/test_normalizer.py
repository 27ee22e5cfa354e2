"""Tests for symbol canonicalization and 8h rate normalization."""

import math

import pytest

from monitor.market_data.normalizer import (
    canonical_symbol,
    normalize,
    normalize_rate,
    parse_number,
)


class TestParseNumber:
    def test_accepts_strings_and_numbers(self) -> None:
        assert parse_number("0.0001") == pytest.approx(0.0001)
        assert parse_number(" -0.5 ") == pytest.approx(-0.5)
        assert parse_number(3) == 3.0
        assert parse_number(0.25) == 0.25

    @pytest.mark.parametrize("value", [None, "", "abc", "nan", "inf", float("nan"), True, [], {}])
    def test_rejects_unusable_values(self, value: object) -> None:
        assert parse_number(value) is None


class TestCanonicalSymbol:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("BTCUSDT", "BTC"),
            ("BTCUSD", "BTC"),
            ("btc", "BTC"),
            ("ethusdt", "ETH"),
            ("1000PEPEUSDT", "1000PEPE"),
            ("SOL", "SOL"),
        ],
    )
    def test_strips_quote_suffix_and_uppercases(self, raw: str, expected: str) -> None:
        assert canonical_symbol(raw) == expected

    def test_is_idempotent(self) -> None:
        for raw in ["BTCUSDT", "ETHUSDUSDT", "kPEPE", "doge", "USDT"]:
            once = canonical_symbol(raw)
            assert canonical_symbol(once) == once

    def test_never_strips_to_empty(self) -> None:
        assert canonical_symbol("USDT") == "USDT"
        assert canonical_symbol("USD") == "USD"

    def test_thousand_prefix_rewrites_lowercase_k(self) -> None:
        assert canonical_symbol("kPEPE", thousand_prefix=True) == "1000PEPE"
        assert canonical_symbol("kBONK", thousand_prefix=True) == "1000BONK"
        assert canonical_symbol("kSHIB", thousand_prefix=True) == "1000SHIB"

    def test_thousand_prefix_leaves_real_k_tickers(self) -> None:
        assert canonical_symbol("KAITO", thousand_prefix=True) == "KAITO"
        assert canonical_symbol("k", thousand_prefix=True) == "K"

    def test_k_prefix_untouched_without_flag(self) -> None:
        assert canonical_symbol("kPEPE") == "KPEPE"


class TestNormalizeRate:
    def test_eight_hour_rate_is_unchanged(self) -> None:
        assert normalize_rate("0.0001", 8) == 0.0001

    def test_hourly_rate_scales_by_eight(self) -> None:
        assert normalize_rate(0.0001, 1) == pytest.approx(0.0008)

    def test_four_hour_rate_doubles(self) -> None:
        assert normalize_rate(0.0003, 4) == pytest.approx(0.0006)

    @pytest.mark.parametrize("interval", [None, 0, -4, "bad"])
    def test_missing_or_invalid_interval_defaults_to_eight(self, interval: object) -> None:
        assert normalize_rate(0.0002, interval) == 0.0002  # type: ignore[arg-type]

    def test_unparseable_rate_is_none(self) -> None:
        assert normalize_rate("n/a", 8) is None

    def test_zero_is_a_real_rate(self) -> None:
        assert normalize_rate("0", 4) == 0.0


class TestNormalize:
    def test_returns_symbol_and_rate(self) -> None:
        symbol, rate = normalize("ETHUSDT", "-0.00005", 4)  # type: ignore[misc]
        assert symbol == "ETH"
        assert rate == pytest.approx(-0.0001)
        assert math.isfinite(rate)

    def test_drops_bad_rate_or_symbol(self) -> None:
        assert normalize("BTCUSDT", None) is None
        assert normalize("", "0.0001") is None
