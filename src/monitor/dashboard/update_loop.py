"""Periodic terminal redraw for the dashboard.

Each iteration renders a full frame from current component state and
replaces the previous one in place.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from typing import TextIO

import structlog

log = structlog.get_logger(__name__)

CLEAR_SCREEN = "\x1b[2J\x1b[H"


def draw(frame: str, stream: TextIO | None = None, clear: bool = True) -> None:
    """Write one frame, clearing the screen first when attached to a terminal."""
    stream = stream or sys.stdout
    if clear and stream.isatty():
        stream.write(CLEAR_SCREEN)
    stream.write(frame)
    stream.write("\n")
    stream.flush()


async def dashboard_update_loop(
    render: Callable[[], str],
    interval: float,
    stream: TextIO | None = None,
) -> None:
    """Redraw the terminal every `interval` seconds until cancelled.

    Args:
        render: Builds the current frame from live component state.
        interval: Seconds between frames.
        stream: Output stream, stdout by default.
    """
    log.info("dashboard_update_loop_started", interval=interval)

    while True:
        try:
            draw(render(), stream)
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            log.info("dashboard_update_loop_cancelled")
            break
        except Exception:
            log.warning("dashboard_update_loop_error", exc_info=True)
            # Keep drawing on the next tick
            await asyncio.sleep(1)
