"""Rate normalizer -- common symbol keys and 8-hour-equivalent funding rates.

Exchanges disagree on both naming and funding cadence:
  - symbols arrive as BTCUSDT, BTCUSD, btc or kPEPE
  - funding settles every 1h, 4h or 8h depending on venue and contract

Everything downstream joins on the canonical base asset and compares rates
on an 8-hour basis:
  canonical = strip trailing USDT/USD, upper-case
  rate_8h   = raw_rate * (8 / interval_hours)
"""

import math
import re

DEFAULT_INTERVAL_HOURS = 8.0

_QUOTE_SUFFIX = re.compile(r"(USDT|USD)$", re.IGNORECASE)
_THOUSAND_PREFIX = "1000"


def parse_number(value: object) -> float | None:
    """Parse a rate given as str, int or float. Returns None unless finite."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def canonical_symbol(raw_symbol: str, thousand_prefix: bool = False) -> str:
    """Map an exchange symbol to its canonical base asset.

    Args:
        raw_symbol: Symbol as reported by the exchange (e.g. "BTCUSDT").
        thousand_prefix: Rewrite the lower-case "k" shorthand used for
            large-supply tokens to the numeric form ("kPEPE" -> "1000PEPE").

    Returns:
        Upper-case base asset. Applying this twice gives the same result.
    """
    symbol = raw_symbol.strip()
    if thousand_prefix and len(symbol) > 1 and symbol[0] == "k":
        symbol = _THOUSAND_PREFIX + symbol[1:]

    symbol = symbol.upper()
    # Strip repeatedly so the result is a fixed point, but never to empty
    while True:
        stripped = _QUOTE_SUFFIX.sub("", symbol)
        if stripped == symbol or not stripped:
            return symbol
        symbol = stripped


def normalize_rate(
    raw_rate: object, interval_hours: float | None = DEFAULT_INTERVAL_HOURS
) -> float | None:
    """Convert a per-interval funding rate to its 8-hour equivalent.

    A missing or non-positive interval is treated as the 8h default, which
    makes normalization a no-op for venues that do not report one.
    """
    rate = parse_number(raw_rate)
    if rate is None:
        return None
    hours = parse_number(interval_hours)
    if hours is None or hours <= 0:
        hours = DEFAULT_INTERVAL_HOURS
    if hours == DEFAULT_INTERVAL_HOURS:
        return rate
    return rate * (DEFAULT_INTERVAL_HOURS / hours)


def normalize(
    raw_symbol: str,
    raw_rate: object,
    native_interval_hours: float | None = DEFAULT_INTERVAL_HOURS,
    thousand_prefix: bool = False,
) -> tuple[str, float] | None:
    """Normalize one feed entry. Returns None when the rate is unusable."""
    rate = normalize_rate(raw_rate, native_interval_hours)
    if rate is None or not raw_symbol:
        return None
    return canonical_symbol(raw_symbol, thousand_prefix=thousand_prefix), rate
