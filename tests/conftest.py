"""Shared test fixtures for the funding monitor."""

from pathlib import Path

import pytest

from monitor.config import AppSettings, BoardSettings, HistorySettings, SourceSettings


@pytest.fixture
def mock_settings(tmp_path: Path) -> AppSettings:
    """Return AppSettings with test defaults and snapshot files under tmp_path."""
    return AppSettings(
        log_level="DEBUG",
        sources=SourceSettings(fetch_gap=0),
        board=BoardSettings(snapshot_path=str(tmp_path / "funding_snapshot.json")),
        history=HistorySettings(
            fetch_gap=0,
            snapshot_path=str(tmp_path / "lighter_history_snapshot.json"),
        ),
    )

