"""Deadline wrapper and process-exit handling for command bodies."""
from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Any, Awaitable, Callable, TypeVar

from ..errors import TimedOut

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_timeout(task: Awaitable[T], timeout: float) -> T:
    """Race ``task`` against ``timeout`` seconds.

    If the task settles first its value or exception propagates unchanged.
    Otherwise TimedOut is raised and the task is abandoned: it is not
    cancelled, and whatever it eventually produces is discarded.
    """
    future = asyncio.ensure_future(task)
    done, _ = await asyncio.wait({future}, timeout=timeout)
    if future in done:
        return future.result()

    future.add_done_callback(_discard)
    raise TimedOut(f"Timed out after {timeout:g}s")


def _discard(future: asyncio.Future[Any]) -> None:
    if not future.cancelled():
        future.exception()


async def _execute(body: Callable[[], Awaitable[Any]], timeout: float) -> int:
    try:
        await run_with_timeout(body(), timeout)
    except (Exception, asyncio.CancelledError) as e:
        logger.debug("Command failed", exc_info=True)
        logger.error("%s: %s", type(e).__name__, str(e) or "cancelled")
        return 1
    return 0


def _terminate(code: int) -> None:
    """Exit now, without waiting for abandoned work in worker threads."""
    sys.stdout.flush()
    sys.stderr.flush()
    logging.shutdown()
    os._exit(code)


def run_command(body: Callable[[], Awaitable[Any]], timeout: float) -> None:
    """Run a command body under a deadline and exit the process.

    Exit status is 0 when ``body`` completes and 1 otherwise, including
    cancellation and Ctrl-C.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        code = loop.run_until_complete(_execute(body, timeout))
    except KeyboardInterrupt:
        logger.error("Interrupted")
        code = 1
    _terminate(code)
