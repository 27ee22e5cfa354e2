"""Tests for sparkline helpers and plain-text frames."""

import io
from datetime import datetime, timezone

import pytest

from monitor.dashboard.render import (
    downsample_series,
    render_board,
    render_history,
    render_spreads,
    sparkline,
)
from monitor.dashboard.table import SortState, build_columns
from monitor.dashboard.update_loop import draw
from monitor.models import ExchangeId, HistoryRow, RateQuote, SpreadEntry, TableRow

L = ExchangeId.LIGHTER
E = ExchangeId.EDGEX


class TestSparkline:
    def test_downsample_short_series_unchanged(self) -> None:
        assert downsample_series([1.0, 2.0], 40) == [1.0, 2.0]

    def test_downsample_uses_bucket_means(self) -> None:
        assert downsample_series([1.0, 3.0, 5.0, 7.0], 2) == pytest.approx([2.0, 6.0])

    def test_downsample_length(self) -> None:
        assert len(downsample_series(list(range(168)), 40)) == 40
        assert downsample_series([1.0], 0) == []

    def test_blocks_by_relative_magnitude(self) -> None:
        assert sparkline([1.0, -0.5, 0.1]) == "█▓▒"

    def test_all_zero_series(self) -> None:
        assert sparkline([0.0, 0.0]) == "▒▒"
        assert sparkline([]) == ""


class TestFrames:
    def test_board_frame_contains_headers_rows_and_spreads(self) -> None:
        rows = [TableRow("BTC", rates={L: 0.0001, E: 0.0003}, arbs={(L, E): -0.0002})]
        spreads = [
            SpreadEntry("BTC", 0.0002, RateQuote(E, 0.0003), RateQuote(L, 0.0001), estimated_profit=2.0)
        ]

        frame = render_board(
            rows,
            build_columns([L, E]),
            SortState("lighterFunding"),
            spreads=spreads,
            last_updated=datetime(2025, 1, 1, tzinfo=timezone.utc),
            status_message="Waiting for Binance funding data...",
            error="edgeX funding for 1 request failed: 500",
        )

        assert "[2] Lighter Funding ↓" in frame
        assert "+0.0100%" in frame
        assert "-0.0200%" in frame
        assert "Top spreads" in frame
        assert "$2.00" in frame
        assert "Waiting for Binance funding data..." in frame
        assert "Funding error: edgeX funding for 1 request failed: 500" in frame
        assert "Last update:" in frame

    def test_board_limit_reports_hidden_rows(self) -> None:
        rows = [TableRow(f"S{i}", rates={L: 0.0001 * i, E: 0.0}) for i in range(5)]
        frame = render_board(rows, build_columns([L, E]), SortState("lighterFunding"), limit=2)
        assert "Showing 2 of 5 symbols" in frame
        assert "S4" in frame
        assert "S0" not in frame

    def test_empty_board_hint(self) -> None:
        frame = render_board([], build_columns([L, E]), SortState("lighterFunding"))
        assert "No data available" in frame

    def test_spreads_panel_empty(self) -> None:
        assert render_spreads([]) == ["Top spreads", "  (none)"]

    def test_history_frame(self) -> None:
        rows = [
            HistoryRow(1, "BTC", -0.02, -0.005, series=[0.01, -0.02], seven_day_rate=-0.01, seven_day_profit=-0.1),
            HistoryRow(2, "NEW", None, None),
        ]
        frame = render_history(
            rows, SortState("sevenDayRate"), principal_usd=1000, error="Partial data: X: boom"
        )
        assert "Principal: $1,000.00" in frame
        assert "-0.0050%" in frame
        assert "-$0.10" in frame
        assert "█▒" in frame or "▓█" in frame or "▒█" in frame
        assert "No history" in frame
        assert "History error: Partial data: X: boom" in frame


class TestDraw:
    def test_draw_writes_frame_without_clearing_non_tty(self) -> None:
        stream = io.StringIO()
        draw("hello", stream)
        assert stream.getvalue() == "hello\n"
