"""Parsing for Binance-style premiumIndex + fundingInfo payloads.

Binance and Aster expose the same pair of endpoints:
  - premiumIndex: one entry per contract with lastFundingRate and
    nextFundingTime
  - fundingInfo: only contracts whose interval differs from the 8h default,
    with fundingIntervalHours

BINANCE QUIRK: delisted/settling contracts report nextFundingTime == 0 and
a literal "0.00000000" lastFundingRate. These are "no data", not a genuine
zero rate, so that sentinel is filtered for Binance only.
"""

from typing import Any

from monitor.market_data.normalizer import normalize, parse_number

ZERO_RATE_SENTINEL = "0.00000000"


def parse_funding_info(entries: Any) -> dict[str, float]:
    """Map upper-cased raw symbol -> funding interval hours."""
    intervals: dict[str, float] = {}
    if not isinstance(entries, list):
        return intervals
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        symbol = entry.get("symbol")
        hours = entry.get("fundingIntervalHours")
        if not symbol or isinstance(hours, bool) or not isinstance(hours, (int, float)):
            continue
        intervals[str(symbol).upper()] = float(hours)
    return intervals


def parse_premium_index(
    entries: Any,
    intervals: dict[str, float],
    skip_unscheduled: bool = False,
    zero_sentinel: bool = False,
) -> dict[str, float]:
    """Build a canonical symbol -> 8h rate map from premiumIndex entries.

    Args:
        entries: Raw premiumIndex list.
        intervals: Output of parse_funding_info; missing symbols default to 8h.
        skip_unscheduled: Drop entries whose nextFundingTime is not > 0.
        zero_sentinel: Drop entries whose lastFundingRate is the literal
            all-zero sentinel string.
    """
    rates: dict[str, float] = {}
    if not isinstance(entries, list):
        return rates

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        raw_symbol = str(entry.get("symbol") or "")
        raw_rate = entry.get("lastFundingRate")

        if skip_unscheduled:
            next_funding = parse_number(entry.get("nextFundingTime"))
            if next_funding is None or next_funding <= 0:
                continue
        if zero_sentinel and raw_rate == ZERO_RATE_SENTINEL:
            continue

        hours = intervals.get(raw_symbol.upper())
        normalized = normalize(raw_symbol, raw_rate, hours)
        if normalized is None:
            continue
        symbol, rate = normalized
        rates[symbol] = rate

    return rates
