"""Sequential per-item sweep with a fixed gap between requests.

edgeX and GRVT only expose funding per contract, and Lighter history is per
market, so a full refresh is one request per item. Requests run one at a
time with a pause in between to stay under the venues' rate limits; a
failing item is recorded and the sweep moves on.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from monitor.exceptions import SourceFetchError
from monitor.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def sweep(
    items: Sequence[T],
    fetch_one: Callable[[T], Awaitable[R | None]],
    gap: float,
    on_result: Callable[[T, R], None] | None = None,
    on_error: Callable[[T, str], None] | None = None,
) -> tuple[list[tuple[T, R]], str | None]:
    """Fetch every item sequentially.

    Any exception from a single item is recorded, never raised; only
    cancellation stops the sweep early.

    Args:
        items: Items to fetch, in order.
        fetch_one: Coroutine fetching one item. None results are dropped.
        gap: Seconds to wait between consecutive requests.
        on_result: Called after each successful item.
        on_error: Called with the failure message after each failed item.

    Returns:
        (results, last_error): successful (item, result) pairs in order, and
        the message of the last failure or None.
    """
    results: list[tuple[T, R]] = []
    last_error: str | None = None

    for index, item in enumerate(items):
        try:
            result = await fetch_one(item)
        except SourceFetchError as e:
            last_error = str(e)
            logger.debug("sweep_item_failed", item=str(item), error=last_error)
            if on_error is not None:
                on_error(item, last_error)
        except Exception as e:
            last_error = f"{type(e).__name__}: {e}"
            logger.warning("sweep_item_error", item=str(item), exc_info=True)
            if on_error is not None:
                on_error(item, last_error)
        else:
            if result is not None:
                results.append((item, result))
                if on_result is not None:
                    on_result(item, result)

        if index < len(items) - 1:
            await asyncio.sleep(gap)

    return results, last_error
