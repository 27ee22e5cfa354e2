"""Tests for the funding board and history snapshot files."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from monitor.data.snapshot import (
    HistorySnapshotStore,
    SnapshotStore,
    arb_key,
    rate_key,
    row_from_flat,
    row_to_flat,
)
from monitor.exceptions import SnapshotError
from monitor.models import ExchangeId, HistoryRow, HistorySnapshot, Snapshot, TableRow

B = ExchangeId.BINANCE
L = ExchangeId.LIGHTER
E = ExchangeId.EDGEX

STAMP = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def row() -> TableRow:
    return TableRow(
        "BTC",
        rates={B: 0.0001, L: 0.00008, E: 0.00012},
        arbs={(B, L): 0.00002, (B, E): -0.00002, (L, E): -0.00004},
        contract_id="10000001",
        contract_name="BTCUSD",
    )


class TestFlatKeys:
    def test_key_names(self) -> None:
        assert rate_key(L) == "lighterFunding"
        assert arb_key(L, E) == "lighterEdgexArb"
        assert arb_key(B, L) == "binanceLighterArb"

    def test_flat_row_shape(self, row: TableRow) -> None:
        flat = row_to_flat(row)
        assert flat["symbol"] == "BTC"
        assert flat["binanceFunding"] == 0.0001
        assert flat["lighterEdgexArb"] == -0.00004
        assert flat["contractId"] == "10000001"
        assert "grvtFunding" not in flat

    def test_from_flat_ignores_unknown_and_bad_values(self) -> None:
        restored = row_from_flat(
            {"symbol": "ETH", "lighterFunding": 0.1, "edgexFunding": "x", "backpackFunding": 0.2}
        )
        assert restored is not None
        assert restored.rates == {L: 0.1}

    def test_from_flat_requires_symbol(self) -> None:
        assert row_from_flat({"lighterFunding": 0.1}) is None


class TestSnapshotStore:
    def test_save_then_load(self, tmp_path: Path, row: TableRow) -> None:
        store = SnapshotStore(tmp_path / "data" / "snapshot.json")
        store.save(Snapshot(rows=[row], last_updated=STAMP))

        loaded = store.load()

        assert loaded is not None
        assert loaded.last_updated == STAMP
        assert loaded.rows == [row]

    def test_file_uses_flat_camel_case_keys(self, tmp_path: Path, row: TableRow) -> None:
        path = tmp_path / "snapshot.json"
        SnapshotStore(path).save(Snapshot(rows=[row], last_updated=STAMP))

        document = json.loads(path.read_text())
        assert set(document) == {"rows", "lastUpdated"}
        assert document["rows"][0]["binanceLighterArb"] == 0.00002
        assert not (tmp_path / "snapshot.json.tmp").exists()

    def test_missing_file_loads_none(self, tmp_path: Path) -> None:
        assert SnapshotStore(tmp_path / "absent.json").load() is None

    def test_malformed_file_loads_none(self, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text("{not json")
        assert SnapshotStore(path).load() is None

    def test_unwritable_path_raises(self, tmp_path: Path, row: TableRow) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")
        store = SnapshotStore(blocker / "snapshot.json")
        with pytest.raises(SnapshotError):
            store.save(Snapshot(rows=[row], last_updated=STAMP))


class TestHistorySnapshotStore:
    def test_save_then_load_keeps_fetched_fields(self, tmp_path: Path) -> None:
        store = HistorySnapshotStore(tmp_path / "history.json")
        row = HistoryRow(
            market_id=1,
            symbol="BTC",
            current_rate=-0.02,
            average_rate=-0.005,
            series=[0.01, -0.02],
            seven_day_rate=-0.01,
            seven_day_profit=-0.1,
        )
        store.save(HistorySnapshot(rows=[row], last_updated=STAMP))

        loaded = store.load()

        assert loaded is not None
        [restored] = loaded.rows
        assert restored.series == [0.01, -0.02]
        assert restored.average_rate == -0.005
        assert restored.seven_day_rate is None
        assert restored.seven_day_profit is None
