"""Plain-text frames for the terminal dashboard.

Every function here is pure: it takes current data and returns a string.
The update loop owns the terminal.
"""

from collections.abc import Sequence
from datetime import datetime

from monitor.dashboard.format import format_points, format_rate, format_usd
from monitor.dashboard.table import (
    HISTORY_COLUMNS,
    Column,
    SortState,
    column_labels,
    row_value,
    sort_history_rows,
    sort_rows,
)
from monitor.models import HistoryRow, SpreadEntry, TableRow

TITLE = "Funding Monitor"
HISTORY_TITLE = "Lighter Funding History (7d)"
INLINE_POINTS = 40
COLUMN_GAP = "  "


# ──────────────────────────────────────────────
# Sparkline
# ──────────────────────────────────────────────


def downsample_series(series: Sequence[float], points: int) -> list[float]:
    """Reduce a series to at most `points` values by averaging equal buckets."""
    values = list(series)
    if points <= 0:
        return []
    if len(values) <= points:
        return values
    size = len(values) / points
    buckets = []
    for i in range(points):
        bucket = values[int(i * size) : int((i + 1) * size)]
        buckets.append(sum(bucket) / len(bucket))
    return buckets


def sparkline(series: Sequence[float]) -> str:
    """One block per value, sized relative to the largest magnitude."""
    if not series:
        return ""
    peak = max(abs(v) for v in series) or 1.0
    chars = []
    for value in series:
        magnitude = abs(value) / peak
        chars.append("█" if magnitude > 0.66 else "▓" if magnitude > 0.33 else "▒")
    return "".join(chars)


# ──────────────────────────────────────────────
# Tables
# ──────────────────────────────────────────────


def _layout(header: list[str], body: list[list[str]], left: set[int]) -> list[str]:
    widths = [len(h) for h in header]
    for cells in body:
        widths = [max(w, len(c)) for w, c in zip(widths, cells)]

    def line(cells: list[str]) -> str:
        padded = [
            c.ljust(widths[i]) if i in left else c.rjust(widths[i])
            for i, c in enumerate(cells)
        ]
        return COLUMN_GAP.join(padded).rstrip()

    return [line(header)] + [line(cells) for cells in body]


def _cell(row: TableRow, column: Column) -> str:
    value = row_value(row, column.key)
    if not column.numeric:
        return str(value or "")
    return format_rate(value)  # type: ignore[arg-type]


def render_table(
    rows: Sequence[TableRow],
    columns: Sequence[Column],
    sort_state: SortState,
    limit: int | None = None,
) -> list[str]:
    ordered = sort_rows(rows, sort_state.key, sort_state.direction)
    if limit is not None:
        ordered = ordered[: max(limit, 0)]
    header = column_labels(columns, sort_state)
    body = [[_cell(row, column) for column in columns] for row in ordered]
    return _layout(header, body, left={0})


def render_spreads(spreads: Sequence[SpreadEntry]) -> list[str]:
    """Top-spreads panel: rank, symbol, spread, both sides, optional profit."""
    lines = ["Top spreads"]
    if not spreads:
        lines.append("  (none)")
        return lines
    body = []
    for rank, entry in enumerate(spreads, start=1):
        cells = [
            f"{rank}.",
            entry.symbol,
            format_rate(entry.diff),
            f"{entry.high.exchange.label} {format_rate(entry.high.rate)}",
            f"{entry.low.exchange.label} {format_rate(entry.low.rate)}",
        ]
        cells.append(format_usd(entry.estimated_profit) if entry.estimated_profit is not None else "")
        body.append(cells)
    header = ["#", "Symbol", "Spread", "High", "Low", "Est. profit"]
    lines.extend("  " + line for line in _layout(header, body, left={0, 1, 3, 4}))
    return lines


def render_board(
    rows: Sequence[TableRow],
    columns: Sequence[Column],
    sort_state: SortState,
    *,
    spreads: Sequence[SpreadEntry] = (),
    last_updated: datetime | None = None,
    status_message: str = "",
    error: str | None = None,
    limit: int | None = None,
) -> str:
    """Full board frame: header lines, funding table, top spreads."""
    lines = [TITLE]
    if last_updated is not None:
        lines.append(f"Last update: {last_updated.astimezone().strftime('%H:%M:%S')}")
    if error:
        lines.append(f"Funding error: {error}")
    if status_message:
        lines.append(status_message)
    lines.append("")

    lines.extend(render_table(rows, columns, sort_state, limit))
    if not rows and not status_message:
        lines.append("No data available. Waiting for next refresh...")
    if limit is not None and len(rows) > limit:
        lines.append(f"Showing {max(limit, 0)} of {len(rows)} symbols")

    lines.append("")
    lines.extend(render_spreads(spreads))
    return "\n".join(lines)


def _history_cells(row: HistoryRow) -> list[str]:
    trend = sparkline(downsample_series(row.series, INLINE_POINTS)) or "No history"
    return [
        row.symbol,
        format_points(row.current_rate),
        format_points(row.average_rate),
        format_points(row.seven_day_rate),
        format_usd(row.seven_day_profit),
        trend,
    ]


def render_history(
    rows: Sequence[HistoryRow],
    sort_state: SortState,
    *,
    principal_usd: float,
    last_updated: datetime | None = None,
    is_refreshing: bool = False,
    error: str | None = None,
    limit: int | None = None,
) -> str:
    """History frame: one line per market with a 7-day sparkline."""
    lines = [HISTORY_TITLE, f"Principal: {format_usd(principal_usd)}"]
    if last_updated is not None:
        lines.append(f"Last update: {last_updated.astimezone().strftime('%H:%M:%S')}")
    if error:
        lines.append(f"History error: {error}")
    if is_refreshing:
        lines.append("Refreshing lighter funding history...")
    lines.append("")

    ordered = sort_history_rows(rows, sort_state.key, sort_state.direction)
    if limit is not None:
        ordered = ordered[: max(limit, 0)]
    header = column_labels(HISTORY_COLUMNS, sort_state) + ["Trend (7d)"]
    body = [_history_cells(row) for row in ordered]
    lines.extend(_layout(header, body, left={0, len(header) - 1}))
    if not rows and not is_refreshing:
        lines.append("No history available yet.")
    return "\n".join(lines)
