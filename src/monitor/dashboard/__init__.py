"""Terminal dashboard -- formatting, sorting and frame rendering."""

from monitor.dashboard.format import format_points, format_rate, format_usd
from monitor.dashboard.render import render_board, render_history
from monitor.dashboard.table import SortState, build_columns, sort_rows

__all__ = [
    "SortState",
    "build_columns",
    "format_points",
    "format_rate",
    "format_usd",
    "render_board",
    "render_history",
    "sort_rows",
]
