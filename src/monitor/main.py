"""Entry point for the funding monitor.

Wires all components together and runs either the funding board (default)
or the Lighter history view (--history) in a single asyncio event loop.

Handles SIGINT/SIGTERM for graceful shutdown: pollers are stopped, clients
closed and pending snapshot writes awaited before exit.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. Exchange clients for the enabled sources
4. FundingJoinEngine (row inclusion policy)
5. SpreadRanker (top spreads)
6. SnapshotStore (cold-start rows)
7. FundingBoard (pollers + join + status)
"""

import argparse
import asyncio
import signal
from typing import Any

from monitor.config import AppSettings
from monitor.dashboard.render import render_board, render_history
from monitor.dashboard.table import SortState, build_columns, default_sort_key
from monitor.dashboard.update_loop import dashboard_update_loop, draw
from monitor.data.snapshot import HistorySnapshotStore, SnapshotStore
from monitor.exchange import (
    AsterClient,
    BinanceClient,
    EdgexClient,
    ExchangeClient,
    GrvtClient,
    LighterClient,
)
from monitor.history.aggregator import HistoryAggregator
from monitor.logging import get_logger, setup_logging
from monitor.market_data.funding_join import FundingJoinEngine
from monitor.market_data.spread_ranker import SpreadRanker
from monitor.models import ExchangeId
from monitor.orchestrator import FundingBoard


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="funding-monitor",
        description="Cross-exchange perpetual funding rates and arbitrage spreads.",
    )
    parser.add_argument(
        "--capital",
        type=float,
        default=None,
        metavar="USD",
        help="Principal used for profit estimates (history default: 1000)",
    )
    parser.add_argument(
        "--history",
        action="store_true",
        help="Show the Lighter seven-day funding history instead of the board",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Refresh every source once, print a single frame and exit",
    )
    args = parser.parse_args(argv)
    if args.capital is not None and args.capital < 0:
        parser.error("--capital must be non-negative")
    return args


def _build_sources(settings: AppSettings) -> tuple[list[tuple[ExchangeClient, float]], EdgexClient | None]:
    """Create one client per enabled source with its poll interval."""
    src = settings.sources
    enabled = src.enabled
    sources: list[tuple[ExchangeClient, float]] = []
    edgex: EdgexClient | None = None

    if ExchangeId.BINANCE in enabled:
        sources.append((BinanceClient(timeout=src.request_timeout), src.binance_interval))
    if ExchangeId.LIGHTER in enabled or ExchangeId.HYPERLIQUID in enabled:
        lighter = LighterClient(
            timeout=src.request_timeout,
            native_interval_hours=src.lighter_native_interval_hours,
        )
        sources.append((lighter, src.lighter_interval))
    if ExchangeId.EDGEX in enabled:
        edgex = EdgexClient(
            timeout=src.request_timeout,
            fetch_gap=src.fetch_gap,
            metadata_interval=src.metadata_interval,
        )
        sources.append((edgex, src.edgex_interval))
    if ExchangeId.GRVT in enabled:
        sources.append((GrvtClient(timeout=src.request_timeout, fetch_gap=src.fetch_gap), src.grvt_interval))
    if ExchangeId.ASTER in enabled:
        sources.append((AsterClient(timeout=src.request_timeout), src.aster_interval))

    return sources, edgex


def _build_components(settings: AppSettings, capital: float | None) -> dict[str, Any]:
    """Build the funding board and everything it depends on.

    Note: Does NOT connect clients -- that happens in FundingBoard.start()
    or in the --once path.

    Args:
        settings: Application-wide settings.
        capital: Principal for the top-spread profit estimate, if given.

    Returns:
        Dict mapping component names to instances.
    """
    sources, edgex = _build_sources(settings)

    join_engine = FundingJoinEngine(
        min_sources=settings.board.min_sources,
        required_exchanges=settings.board.required_exchanges,
    )
    ranker = SpreadRanker(settings.sources.enabled)
    store = SnapshotStore(settings.board.snapshot_path)

    board = FundingBoard(
        sources=sources,
        enabled=settings.sources.enabled,
        join_engine=join_engine,
        ranker=ranker,
        store=store,
        principal_usd=capital,
        top_spread_limit=settings.board.top_spread_limit,
        contracts=edgex.contracts_by_symbol if edgex is not None else None,
    )

    return {
        "sources": sources,
        "edgex_client": edgex,
        "join_engine": join_engine,
        "ranker": ranker,
        "snapshot_store": store,
        "board": board,
    }


def _setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Register SIGINT/SIGTERM to set the stop event.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("monitor.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


async def _run_until_stopped(render: Any, interval: float) -> None:
    stop_event = asyncio.Event()
    _setup_signal_handlers(stop_event)
    update_task = asyncio.create_task(dashboard_update_loop(render, interval))
    try:
        await stop_event.wait()
    finally:
        update_task.cancel()
        try:
            await update_task
        except asyncio.CancelledError:
            pass


async def run_board(settings: AppSettings, args: argparse.Namespace) -> None:
    logger = get_logger("monitor.main")
    components = _build_components(settings, args.capital)
    board: FundingBoard = components["board"]
    board.load_snapshot()

    columns = build_columns(board.enabled)
    sort_state = SortState(default_sort_key(columns))

    def render() -> str:
        return render_board(
            board.rows,
            columns,
            sort_state,
            spreads=board.top_spreads(),
            last_updated=board.last_updated,
            status_message=board.status_message(),
            error=board.latest_error(),
            limit=settings.board.display_limit,
        )

    logger.info(
        "funding_monitor_starting",
        enabled=[e.value for e in board.enabled],
        min_sources=settings.board.min_sources,
        capital=args.capital,
        once=args.once,
    )

    if args.once:
        try:
            for poller in board.pollers:
                await poller.client.connect()
            await board.refresh_all()
            draw(render(), clear=False)
        finally:
            await board.stop()
        return

    try:
        await board.start()
        await _run_until_stopped(render, settings.board.render_interval)
    finally:
        await board.stop()
        logger.info("funding_monitor_stopped")


async def run_history(settings: AppSettings, args: argparse.Namespace) -> None:
    logger = get_logger("monitor.main")
    client = LighterClient(
        timeout=settings.sources.request_timeout,
        native_interval_hours=settings.sources.lighter_native_interval_hours,
    )
    aggregator = HistoryAggregator(
        client,
        settings.history,
        principal_usd=args.capital,
        store=HistorySnapshotStore(settings.history.snapshot_path),
    )
    aggregator.load_snapshot()
    sort_state = SortState("sevenDayRate")

    def render() -> str:
        return render_history(
            aggregator.rows,
            sort_state,
            principal_usd=aggregator.principal_usd,
            last_updated=aggregator.last_updated,
            is_refreshing=aggregator.is_refreshing,
            error=aggregator.error,
            limit=settings.history.display_limit,
        )

    logger.info("history_view_starting", principal_usd=aggregator.principal_usd, once=args.once)

    try:
        await client.connect()
        if args.once:
            await aggregator.refresh()
            draw(render(), clear=False)
            return
        await aggregator.start()
        await _run_until_stopped(render, settings.board.render_interval)
    finally:
        await aggregator.stop()
        await client.close()
        logger.info("history_view_stopped")


async def run(argv: list[str] | None = None) -> None:
    """Run the funding monitor.

    The board polls every enabled source on its own timer and redraws the
    joined table; --history runs the Lighter history view instead.
    """
    args = parse_args(argv)

    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level)

    if args.history:
        await run_history(settings, args)
    else:
        await run_board(settings, args)


def main(argv: list[str] | None = None) -> None:
    """Synchronous entry point."""
    asyncio.run(run(argv))


if __name__ == "__main__":
    main()
