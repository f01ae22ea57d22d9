"""Task and callback helpers that keep one failure from taking a node down.

Provides:
- ``supervised_task``: create_task wrapper with error logging
- ``call_handler``: invoke a sync or async callback, logging what it raises
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger


def supervised_task(
    coro: Awaitable[Any],
    *,
    name: str = "",
) -> asyncio.Task:
    """Wrap ``asyncio.create_task`` with an error-logging callback.

    If the task raises an exception (other than ``CancelledError``),
    it is logged as an error instead of becoming an unhandled exception.
    """
    task = asyncio.create_task(coro, name=name or None)

    def _on_done(t: asyncio.Task) -> None:
        if t.cancelled():
            return
        exc = t.exception()
        if exc is not None:
            logger.error(
                "[UdpNode/Resilience] supervised task {!r} failed: {!r}",
                t.get_name(), exc,
            )

    task.add_done_callback(_on_done)
    return task


async def call_handler(
    handler: Callable[..., Any],
    *args: Any,
    label: str = "handler",
) -> bool:
    """Call *handler* and await its result if it returned a coroutine.

    Returns ``False`` if the handler raised; the exception is logged, not propagated.
    """
    try:
        result = handler(*args)
        if asyncio.iscoroutine(result):
            await result
        return True
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        logger.opt(exception=exc).error("[UdpNode] {} raised: {!r}", label, exc)
        return False
