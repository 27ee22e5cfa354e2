"""Lighter seven-day funding history aggregation.

Per market, hourly funding points over the lookback window become a signed
chronological series:
  signed_rate      = rate * (-1 if direction == "short" else 1)
  average_rate     = mean(series)
  current_rate     = series[-1], else the rate reported by the market list
  seven_day_rate   = sum(series)            (~168 hourly points)
  seven_day_profit = principal * seven_day_rate / 100

Lighter history rates are percentage points, hence the /100 for profit.

Markets are fetched one at a time with a fixed gap to respect Lighter's
60 requests/minute guidance. A failing market is recorded and skipped; rows
are republished after every market so the display can show progress.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TypeVar

from monitor.config import HistorySettings
from monitor.exceptions import SnapshotError, SourceFetchError
from monitor.exchange.lighter_client import LighterClient
from monitor.exchange.sweep import sweep
from monitor.logging import get_logger
from monitor.market_data.normalizer import parse_number
from monitor.models import FundingHistoryPoint, HistoryMarket, HistoryRow, HistorySnapshot

if TYPE_CHECKING:
    from monitor.data.snapshot import HistorySnapshotStore

logger = get_logger(__name__)

T = TypeVar("T", HistoryMarket, HistoryRow)


def signed_rate(point: FundingHistoryPoint) -> float | None:
    """Fold the long/short direction into the rate's sign."""
    base = parse_number(point.rate)
    if base is None:
        base = parse_number(point.value)
    if base is None:
        return None
    if (point.direction or "").lower() == "short":
        return -base
    return base


def build_series(points: Iterable[FundingHistoryPoint]) -> list[float]:
    """Chronological signed rates; unparseable points are dropped."""
    ordered = sorted(points, key=lambda p: p.timestamp)
    return [rate for rate in map(signed_rate, ordered) if rate is not None]


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def _total(values: list[float]) -> float | None:
    return sum(values) if values else None


def with_derived_fields(row: HistoryRow, principal_usd: float) -> HistoryRow:
    """Recompute average, current and seven-day fields from the series."""
    series = list(row.series)
    average_rate = row.average_rate if row.average_rate is not None else _mean(series)
    current_rate = series[-1] if series else row.current_rate
    seven_day_rate = _total(series)
    seven_day_profit = None
    if seven_day_rate is not None and principal_usd > 0:
        seven_day_profit = principal_usd * (seven_day_rate / 100)

    return HistoryRow(
        market_id=row.market_id,
        symbol=row.symbol,
        current_rate=current_rate,
        average_rate=average_rate,
        series=series,
        seven_day_rate=seven_day_rate,
        seven_day_profit=seven_day_profit,
    )


def build_history(
    market_id: int,
    symbol: str,
    current_rate: float | None,
    points: Iterable[FundingHistoryPoint],
    principal_usd: float = 0.0,
) -> HistoryRow:
    """Aggregate raw funding points for one market into a HistoryRow."""
    series = build_series(points)
    return with_derived_fields(
        HistoryRow(
            market_id=market_id,
            symbol=symbol,
            current_rate=current_rate,
            average_rate=_mean(series),
            series=series,
        ),
        principal_usd,
    )


def dedupe(items: Iterable[T]) -> list[T]:
    """Keep the first item per (market_id, upper-cased symbol)."""
    seen: set[tuple[int, str]] = set()
    unique: list[T] = []
    for item in items:
        key = (item.market_id, item.symbol.upper())
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def filter_excluded(items: Iterable[T], excluded: Iterable[str]) -> list[T]:
    """Drop items whose symbol is in the excluded set (case-insensitive)."""
    blocked = {s.upper() for s in excluded}
    return [item for item in items if item.symbol.upper() not in blocked]


class HistoryAggregator:
    """Refreshes seven-day funding history for every Lighter market.

    Args:
        client: Lighter REST client.
        settings: Lookback, pacing and exclusion settings.
        principal_usd: Capital used for the seven-day profit projection.
        store: Optional snapshot store for cold-start rows.
        on_update: Called after every published change.
    """

    def __init__(
        self,
        client: LighterClient,
        settings: HistorySettings,
        principal_usd: float | None = None,
        store: HistorySnapshotStore | None = None,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._principal = settings.principal_usd if principal_usd is None else principal_usd
        self._store = store
        self._on_update = on_update
        self.rows: list[HistoryRow] = []
        self.error: str | None = None
        self.is_refreshing = False
        self.last_updated: datetime | None = None
        self._in_flight = False
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def principal_usd(self) -> float:
        return self._principal

    def load_snapshot(self) -> bool:
        """Populate rows from the snapshot file. Returns True if loaded."""
        if self._store is None:
            return False
        snapshot = self._store.load()
        if snapshot is None:
            return False
        self.rows = self._publishable(
            with_derived_fields(row, self._principal) for row in snapshot.rows
        )
        self.last_updated = snapshot.last_updated
        logger.info("history_snapshot_loaded", rows=len(self.rows))
        return True

    async def start(self) -> None:
        if self._running:
            logger.warning("history_aggregator_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._stream_loop())
        logger.info("history_aggregator_started", refresh_interval=self._settings.refresh_interval)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("history_aggregator_stopped")

    async def _stream_loop(self) -> None:
        while self._running:
            try:
                await self.refresh()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("history_refresh_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._settings.refresh_interval)

    async def refresh(self) -> bool:
        """Run one full refresh cycle. Skipped if one is already running.

        Returns:
            True if the cycle ran to completion (possibly with partial data).
        """
        if self._in_flight:
            logger.debug("history_refresh_skipped_in_flight")
            return False
        self._in_flight = True
        self.is_refreshing = True
        self.error = None
        self._notify()
        try:
            return await self._refresh()
        finally:
            self._in_flight = False
            self.is_refreshing = False
            self._notify()

    async def _refresh(self) -> bool:
        try:
            markets = dedupe(await self._client.fetch_markets())
        except SourceFetchError as e:
            self.error = str(e)
            logger.warning("history_markets_failed", error=self.error)
            return False

        if not markets:
            self.error = "No lighter markets available"
            return False

        rows: list[HistoryRow] = []
        failures: list[str] = []
        lookback_seconds = self._settings.lookback_days * 86_400

        async def fetch_points(market: HistoryMarket) -> list[FundingHistoryPoint]:
            return await self._client.fetch_funding_history(
                market.market_id,
                lookback_seconds=lookback_seconds,
                count_back=self._settings.count_back,
                resolution=self._settings.resolution,
            )

        def publish(market: HistoryMarket, points: list[FundingHistoryPoint]) -> None:
            rows.append(
                build_history(
                    market.market_id,
                    market.symbol,
                    market.current_rate,
                    points,
                    self._principal,
                )
            )
            self.rows = self._publishable(rows)
            self.error = self._failure_message(failures)
            self._notify()

        def record_failure(market: HistoryMarket, reason: str) -> None:
            failures.append(f"{market.symbol}: {reason}")

        await sweep(
            markets,
            fetch_points,
            self._settings.fetch_gap,
            on_result=publish,
            on_error=record_failure,
        )

        self.rows = self._publishable(rows)
        self.error = self._failure_message(failures)
        self.last_updated = datetime.now(timezone.utc)
        logger.info(
            "history_refresh_complete",
            markets=len(markets),
            rows=len(self.rows),
            failures=len(failures),
        )
        self._save_snapshot()
        return True

    def _publishable(self, rows: Iterable[HistoryRow]) -> list[HistoryRow]:
        return filter_excluded(dedupe(rows), self._settings.excluded_symbols)

    @staticmethod
    def _failure_message(failures: list[str]) -> str | None:
        return f"Partial data: {'; '.join(failures)}" if failures else None

    def _save_snapshot(self) -> None:
        if self._store is None or self.last_updated is None:
            return
        try:
            self._store.save(HistorySnapshot(rows=list(self.rows), last_updated=self.last_updated))
        except SnapshotError as e:
            logger.warning("history_snapshot_save_failed", error=str(e))

    def _notify(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update()
        except Exception:
            logger.warning("history_update_callback_error", exc_info=True)
