"""Funding board -- wires source pollers, the join engine and the ranker.

Every time any source slot changes, the board rebuilds the full row set:
  1. COLLECT: current rate map of every enabled exchange
  2. JOIN: one row per symbol with enough sources, plus pair spreads
  3. STATUS: ready / waiting for an exchange / empty
  4. PERSIST: fire-and-forget snapshot write after a non-empty join

Slots are written wholesale by their own poller and the join only reads
them, so no locking is needed: last write wins per source.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from monitor.exceptions import SnapshotError
from monitor.exchange.client import ExchangeClient
from monitor.logging import get_logger
from monitor.market_data.funding_join import FundingJoinEngine
from monitor.market_data.funding_monitor import SourcePoller, SourceState
from monitor.market_data.spread_ranker import SpreadRanker
from monitor.models import ExchangeId, RowStatus, Snapshot, SpreadEntry, TableRow, ordered_exchanges

if TYPE_CHECKING:
    from monitor.data.snapshot import SnapshotStore

logger = get_logger(__name__)


class FundingBoard:
    """Live joined funding table fed by independent per-source pollers.

    Args:
        sources: (client, poll interval seconds) for each source.
        enabled: Exchanges shown on the board.
        join_engine: Row inclusion policy.
        ranker: Top-spread ranker.
        store: Optional snapshot store for cold-start rows.
        principal_usd: Capital for the estimated-profit projection.
        top_spread_limit: Number of spreads returned by top_spreads().
        contracts: Optional provider of symbol -> (contract_id, name).
    """

    def __init__(
        self,
        sources: Iterable[tuple[ExchangeClient, float]],
        enabled: Iterable[ExchangeId],
        join_engine: FundingJoinEngine,
        ranker: SpreadRanker,
        store: SnapshotStore | None = None,
        principal_usd: float | None = None,
        top_spread_limit: int = 10,
        contracts: Callable[[], Mapping[str, tuple[str, str]]] | None = None,
    ) -> None:
        self._enabled = ordered_exchanges(enabled)
        self._pollers = [
            SourcePoller(client, interval, on_update=self.recompute)
            for client, interval in sources
        ]
        self._join_engine = join_engine
        self._ranker = ranker
        self._store = store
        self._principal = principal_usd
        self._top_spread_limit = top_spread_limit
        self._contracts = contracts
        self._pending_saves: set[asyncio.Future] = set()  # type: ignore[type-arg]
        self._save_lock = threading.Lock()

        self.rows: list[TableRow] = []
        self.last_updated: datetime | None = None
        self.status = RowStatus.IDLE
        self.waiting_for: ExchangeId | None = None

    @property
    def enabled(self) -> list[ExchangeId]:
        return list(self._enabled)

    @property
    def pollers(self) -> list[SourcePoller]:
        return list(self._pollers)

    # ──────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────

    def load_snapshot(self) -> bool:
        """Seed rows from the snapshot file. Returns True if rows were loaded."""
        if self._store is None:
            return False
        snapshot = self._store.load()
        if snapshot is None or not snapshot.rows:
            return False
        self.rows = snapshot.rows
        self.last_updated = snapshot.last_updated
        self.status = RowStatus.READY
        return True

    async def start(self) -> None:
        """Connect every client and start its poller."""
        for poller in self._pollers:
            await poller.client.connect()
            await poller.start()
        logger.info(
            "funding_board_started",
            enabled=[e.value for e in self._enabled],
            sources=len(self._pollers),
        )

    async def stop(self) -> None:
        """Stop pollers, close clients, and wait for pending snapshot writes."""
        for poller in self._pollers:
            await poller.stop()
        for poller in self._pollers:
            try:
                await poller.client.close()
            except Exception:
                logger.warning("client_close_failed", source=poller.client.name, exc_info=True)
        if self._pending_saves:
            await asyncio.gather(*self._pending_saves, return_exceptions=True)
        logger.info("funding_board_stopped")

    async def refresh_all(self) -> None:
        """Poll every source once, concurrently."""
        await asyncio.gather(*(poller.poll_once() for poller in self._pollers))

    # ──────────────────────────────────────────────
    # Join and status
    # ──────────────────────────────────────────────

    def source_states(self) -> dict[ExchangeId, SourceState]:
        states: dict[ExchangeId, SourceState] = {}
        for poller in self._pollers:
            states.update(poller.states)
        return states

    def rate_maps(self) -> dict[ExchangeId, dict[str, float]]:
        states = self.source_states()
        return {e: states[e].rates for e in self._enabled if e in states}

    def recompute(self) -> None:
        """Rebuild rows and status from the current slot contents."""
        states = self.source_states()
        with_data = {e for e in self._enabled if e in states and states[e].has_data}

        if not with_data:
            self.status = RowStatus.READY if self.rows else RowStatus.IDLE
            self.waiting_for = None
            return

        self.waiting_for = next((e for e in self._enabled if e not in with_data), None)

        contracts = self._contracts() if self._contracts is not None else None
        rows = self._join_engine.join(self.rate_maps(), self._enabled, contracts)
        if not rows:
            self.rows = []
            self.status = RowStatus.EMPTY
            logger.info("funding_join_empty", sources=sorted(e.value for e in with_data))
            return

        self.rows = rows
        self.status = RowStatus.WAITING if self.waiting_for is not None else RowStatus.READY
        self.last_updated = datetime.now(timezone.utc)
        logger.debug("funding_rows_rebuilt", rows=len(rows), status=self.status.value)
        self._save_snapshot(Snapshot(rows=rows, last_updated=self.last_updated))

    def top_spreads(self, limit: int | None = None) -> list[SpreadEntry]:
        return self._ranker.top_spreads(
            self.rows,
            self._top_spread_limit if limit is None else limit,
            principal_usd=self._principal,
        )

    def latest_error(self) -> str | None:
        """First source error in exchange priority order."""
        states = self.source_states()
        for exchange in self._enabled:
            state = states.get(exchange)
            if state is not None and state.error:
                return state.error
        return None

    def status_message(self) -> str:
        """Most relevant condition for the status line, or empty string."""
        states = self.source_states()
        for exchange in self._enabled:
            state = states.get(exchange)
            if state is not None and state.is_refreshing:
                return f"Refreshing {exchange.label} funding data..."
        if self.status is RowStatus.WAITING and self.waiting_for is not None:
            return f"Waiting for {self.waiting_for.label} funding data..."
        if self.status is RowStatus.EMPTY:
            return "No overlapping contracts found."
        if self.status is RowStatus.IDLE:
            return "Waiting for first funding refresh..."
        return ""

    # ──────────────────────────────────────────────
    # Snapshot persistence
    # ──────────────────────────────────────────────

    def _save_snapshot(self, snapshot: Snapshot) -> None:
        if self._store is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write_snapshot(snapshot)
            return
        future = loop.run_in_executor(None, self._write_snapshot, snapshot)
        self._pending_saves.add(future)
        future.add_done_callback(self._pending_saves.discard)

    def _write_snapshot(self, snapshot: Snapshot) -> None:
        with self._save_lock:
            try:
                self._store.save(snapshot)  # type: ignore[union-attr]
            except SnapshotError as e:
                logger.warning("snapshot_save_failed", error=str(e))
