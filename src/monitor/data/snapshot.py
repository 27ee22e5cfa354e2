"""JSON snapshot files for instant cold-start display.

The board writes its last successful join after every refresh and reads it
once at startup, so the table is populated before the first fetch returns.
The history view does the same with its own file.

File format (rows are flat so the file stays readable and diffable):
  {
    "rows": [{"symbol": "BTC", "binanceFunding": 0.0001,
              "lighterFunding": 0.00008, "binanceLighterArb": 0.00002, ...}],
    "lastUpdated": "2025-01-01T00:00:00Z"
  }

Writes go to a temp file that is renamed over the target, so a crash mid-write
never leaves a truncated snapshot behind.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from monitor.exceptions import SnapshotError
from monitor.logging import get_logger
from monitor.models import (
    ExchangeId,
    HistoryRow,
    HistorySnapshot,
    Snapshot,
    TableRow,
    exchange_pairs,
)

logger = get_logger(__name__)


def rate_key(exchange: ExchangeId) -> str:
    """Flat column name for an exchange rate, e.g. "lighterFunding"."""
    return f"{exchange.value}Funding"


def arb_key(first: ExchangeId, second: ExchangeId) -> str:
    """Flat column name for a pair spread, e.g. "lighterEdgexArb"."""
    return f"{first.value}{second.value.capitalize()}Arb"


_RATE_KEYS = {rate_key(e): e for e in ExchangeId}
_ARB_KEYS = {arb_key(a, b): (a, b) for a, b in exchange_pairs(ExchangeId)}


def row_to_flat(row: TableRow) -> dict[str, Any]:
    flat: dict[str, Any] = {"symbol": row.symbol}
    if row.contract_id is not None:
        flat["contractId"] = row.contract_id
    if row.contract_name is not None:
        flat["contractName"] = row.contract_name
    for exchange, rate in row.rates.items():
        flat[rate_key(exchange)] = rate
    for (first, second), value in row.arbs.items():
        flat[arb_key(first, second)] = value
    return flat


def row_from_flat(flat: dict[str, Any]) -> TableRow | None:
    """Rebuild a row; unknown keys and non-numeric values are ignored."""
    symbol = flat.get("symbol")
    if not isinstance(symbol, str) or not symbol:
        return None
    rates = {
        exchange: float(flat[key])
        for key, exchange in _RATE_KEYS.items()
        if isinstance(flat.get(key), (int, float)) and not isinstance(flat.get(key), bool)
    }
    arbs = {
        pair: float(flat[key])
        for key, pair in _ARB_KEYS.items()
        if isinstance(flat.get(key), (int, float)) and not isinstance(flat.get(key), bool)
    }
    contract_id = flat.get("contractId")
    contract_name = flat.get("contractName")
    return TableRow(
        symbol=symbol,
        rates=rates,
        arbs=arbs,
        contract_id=str(contract_id) if contract_id is not None else None,
        contract_name=str(contract_name) if contract_name is not None else None,
    )


class FundingSnapshotFile(BaseModel):
    """On-disk shape of the funding board snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    rows: list[dict[str, Any]]
    last_updated: datetime = Field(alias="lastUpdated")


class HistoryRowRecord(BaseModel):
    """On-disk shape of one history row. Derived fields are not stored."""

    model_config = ConfigDict(populate_by_name=True)

    market_id: int = Field(alias="marketId")
    symbol: str
    current_rate: float | None = Field(default=None, alias="currentRate")
    average_rate: float | None = Field(default=None, alias="averageRate")
    series: list[float] = Field(default_factory=list)


class HistorySnapshotFile(BaseModel):
    """On-disk shape of the history view snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    rows: list[HistoryRowRecord]
    last_updated: datetime = Field(alias="lastUpdated")


class _JsonFile:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("snapshot_read_failed", path=str(self._path), error=str(e))
            return None

    def _write(self, text: str) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise SnapshotError(f"Cannot write snapshot {self._path}: {e}") from e


class SnapshotStore(_JsonFile):
    """Reads and writes the funding board snapshot."""

    def load(self) -> Snapshot | None:
        """Return the stored snapshot, or None if missing or malformed."""
        text = self._read()
        if text is None:
            return None
        try:
            document = FundingSnapshotFile.model_validate_json(text)
        except ValidationError as e:
            logger.warning("snapshot_invalid", path=str(self._path), errors=e.error_count())
            return None
        rows = [row for row in map(row_from_flat, document.rows) if row is not None]
        logger.info("snapshot_loaded", path=str(self._path), rows=len(rows))
        return Snapshot(rows=rows, last_updated=document.last_updated)

    def save(self, snapshot: Snapshot) -> None:
        """Overwrite the snapshot file.

        Raises:
            SnapshotError: If the file cannot be written.
        """
        document = FundingSnapshotFile(
            rows=[row_to_flat(row) for row in snapshot.rows],
            last_updated=snapshot.last_updated,
        )
        self._write(document.model_dump_json(by_alias=True))
        logger.debug("snapshot_saved", path=str(self._path), rows=len(snapshot.rows))


class HistorySnapshotStore(_JsonFile):
    """Reads and writes the Lighter history snapshot.

    Only the fetched fields are stored; seven-day totals depend on the
    principal and are recomputed by the caller after loading.
    """

    def load(self) -> HistorySnapshot | None:
        text = self._read()
        if text is None:
            return None
        try:
            document = HistorySnapshotFile.model_validate_json(text)
        except ValidationError as e:
            logger.warning("history_snapshot_invalid", path=str(self._path), errors=e.error_count())
            return None
        rows = [
            HistoryRow(
                market_id=record.market_id,
                symbol=record.symbol,
                current_rate=record.current_rate,
                average_rate=record.average_rate,
                series=list(record.series),
            )
            for record in document.rows
        ]
        return HistorySnapshot(rows=rows, last_updated=document.last_updated)

    def save(self, snapshot: HistorySnapshot) -> None:
        document = HistorySnapshotFile(
            rows=[
                HistoryRowRecord(
                    market_id=row.market_id,
                    symbol=row.symbol,
                    current_rate=row.current_rate,
                    average_rate=row.average_rate,
                    series=row.series,
                )
                for row in snapshot.rows
            ],
            last_updated=snapshot.last_updated,
        )
        self._write(document.model_dump_json(by_alias=True))
        logger.debug("history_snapshot_saved", path=str(self._path), rows=len(snapshot.rows))
