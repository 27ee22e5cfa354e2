"""Per-source funding rate polling with skip-if-busy ticks.

Each exchange client gets its own poller running on an independent timer.
A tick that fires while the previous fetch for that source is still running
is skipped (not queued), so a slow venue never piles up requests and never
delays any other venue.

Failures keep the last good rates: the slot's `error` is updated and its
`rates` are left untouched.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from monitor.exceptions import SourceFetchError
from monitor.exchange.client import ExchangeClient
from monitor.logging import get_logger
from monitor.models import ExchangeId

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceState:
    """Latest known funding data for one exchange slot."""

    rates: dict[str, float] = field(default_factory=dict)
    error: str | None = None
    is_refreshing: bool = False
    last_updated: float | None = None

    @property
    def has_data(self) -> bool:
        return bool(self.rates)


class SourcePoller:
    """Polls one exchange client on a fixed interval.

    Args:
        client: Source to poll.
        poll_interval: Seconds between ticks.
        on_update: Called (synchronously) after every tick that changed a
            slot, successful or not.
    """

    def __init__(
        self,
        client: ExchangeClient,
        poll_interval: float,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._on_update = on_update
        self._states: dict[ExchangeId, SourceState] = {
            exchange: SourceState() for exchange in client.exchanges
        }
        self._in_flight = False
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._tick_tasks: set[asyncio.Task] = set()  # type: ignore[type-arg]

    @property
    def client(self) -> ExchangeClient:
        return self._client

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def states(self) -> dict[ExchangeId, SourceState]:
        return dict(self._states)

    def state(self, exchange: ExchangeId) -> SourceState:
        return self._states[exchange]

    async def start(self) -> None:
        """Begin polling in the background. The first tick fires immediately."""
        if self._running:
            logger.warning("source_poller_already_running", source=self._client.name)
            return
        self._running = True
        self._task = asyncio.create_task(self._stream_loop())
        logger.info(
            "source_poller_started",
            source=self._client.name,
            poll_interval=self._poll_interval,
        )

    async def stop(self) -> None:
        """Stop the timer and cancel any fetch still running."""
        self._running = False
        tasks = [t for t in (self._task, *self._tick_tasks) if t is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._tick_tasks.clear()
        logger.info("source_poller_stopped", source=self._client.name)

    async def _stream_loop(self) -> None:
        """Timer loop: fire a tick, wait, repeat. Ticks never overlap."""
        while self._running:
            self.trigger()
            await asyncio.sleep(self._poll_interval)

    def trigger(self) -> asyncio.Task | None:  # type: ignore[type-arg]
        """Start a fetch in the background unless one is already running."""
        if self._in_flight:
            logger.debug("poll_skipped_in_flight", source=self._client.name)
            return None
        task = asyncio.create_task(self.poll_once())
        self._tick_tasks.add(task)
        task.add_done_callback(self._tick_tasks.discard)
        return task

    async def poll_once(self) -> bool:
        """Run one fetch and write the result to this source's slots.

        Returns:
            True if the fetch succeeded, False if it failed or was skipped.
        """
        if self._in_flight:
            logger.debug("poll_skipped_in_flight", source=self._client.name)
            return False

        self._in_flight = True
        self._set_all(is_refreshing=True)
        try:
            result = await self._client.fetch_funding_rates()
        except asyncio.CancelledError:
            self._set_all(is_refreshing=False)
            raise
        except SourceFetchError as e:
            self._record_failure(str(e))
            return False
        except Exception as e:
            logger.warning("source_poll_error", source=self._client.name, exc_info=True)
            self._record_failure(f"{self._client.name}: {e}")
            return False
        finally:
            self._in_flight = False

        now = time.time()
        for exchange in self._client.exchanges:
            self._states[exchange] = SourceState(
                rates=dict(result.get(exchange, {})),
                error=self._client.partial_error,
                is_refreshing=False,
                last_updated=now,
            )
        logger.debug(
            "source_rates_updated",
            source=self._client.name,
            counts={e.value: len(result.get(e, {})) for e in self._client.exchanges},
        )
        self._notify()
        return True

    def _record_failure(self, message: str) -> None:
        logger.warning("source_fetch_failed", source=self._client.name, error=message)
        for exchange, state in self._states.items():
            self._states[exchange] = replace(state, error=message, is_refreshing=False)
        self._notify()

    def _set_all(self, **changes: object) -> None:
        for exchange, state in self._states.items():
            self._states[exchange] = replace(state, **changes)  # type: ignore[arg-type]

    def _notify(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update()
        except Exception:
            logger.warning("source_update_callback_error", source=self._client.name, exc_info=True)
