"""Value formatting for the terminal display."""

import math


def _is_number(value: float | None) -> bool:
    return value is not None and not isinstance(value, bool) and math.isfinite(value)


def format_percent(value: float | None, scale: float = 100.0) -> str:
    """Signed percentage with four decimals, or "--" when missing.

    Args:
        value: Value to format.
        scale: Multiplier to percent. Fractional rates use 100; history
            rates are already percentage points and use 1.
    """
    if not _is_number(value):
        return "--"
    percent = value * scale + 0.0  # type: ignore[operator]
    formatted = f"{percent:.4f}"
    if percent > 0:
        return f"+{formatted}%"
    return f"{formatted}%"


def format_rate(value: float | None) -> str:
    """0.0001 -> "+0.0100%"."""
    return format_percent(value)


def format_points(value: float | None) -> str:
    """Percentage-point value (0.01 -> "+0.0100%")."""
    return format_percent(value, scale=1.0)


def format_usd(value: float | None) -> str:
    """1234.56 -> "$1,234.56", -12 -> "-$12.00"."""
    if not _is_number(value):
        return "--"
    sign = "" if value >= 0 else "-"  # type: ignore[operator]
    return f"{sign}${abs(value):,.2f}"  # type: ignore[arg-type]
