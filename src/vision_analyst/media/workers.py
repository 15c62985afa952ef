"""
Worker Threads
==============

Blocking decoder and device calls run in a worker thread through
asyncio.to_thread. A worker thread cannot be interrupted, so cancelling
the awaiting coroutine must never hand a resource to release() while the
thread is still using it.

Design Rules:
    - acquire_in_worker: a cancelled caller never sees the resource, so a
      resource opened after the cancellation is released as soon as the
      open completes
    - run_in_worker: a cancelled caller waits for the call to return before
      the cancellation propagates, so cleanup runs after the thread is done

Example:
    source = await acquire_in_worker(OpenCVVideoSource.open, path)
    try:
        pixels = await run_in_worker(source.capture_at, 3.0)
    finally:
        source.release()
"""

import asyncio
import logging
from typing import Any, Callable, Protocol, TypeVar


logger = logging.getLogger(__name__)


class Releasable(Protocol):
    def release(self) -> None:
        ...


R = TypeVar("R", bound=Releasable)
T = TypeVar("T")


def _release_late(future: "asyncio.Future[Releasable]") -> None:
    """Release a resource whose open outlived a cancelled caller."""
    if future.cancelled() or future.exception() is not None:
        return
    resource = future.result()
    resource.release()
    logger.info(f"Released {type(resource).__name__} opened after caller was cancelled")


async def acquire_in_worker(open_resource: Callable[..., R], *args: Any) -> R:
    """
    Open a releasable resource in a worker thread.

    Args:
        open_resource: Blocking call returning an object with release()
        *args: Arguments for open_resource

    Returns:
        The opened resource (the caller owns its release)
    """
    opening = asyncio.ensure_future(asyncio.to_thread(open_resource, *args))
    try:
        return await asyncio.shield(opening)
    except asyncio.CancelledError:
        opening.add_done_callback(_release_late)
        raise


async def run_in_worker(func: Callable[..., T], *args: Any) -> T:
    """
    Run a blocking call in a worker thread.

    If the caller is cancelled, the cancellation is held until the call
    returns; its result or error is discarded.

    Args:
        func: Blocking call
        *args: Arguments for func

    Returns:
        Result of func
    """
    running = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(running)
    except asyncio.CancelledError:
        while not running.done():
            try:
                await asyncio.wait({running})
            except asyncio.CancelledError:
                continue
        if not running.cancelled() and running.exception() is not None:
            logger.debug(f"Worker call failed after cancellation: {running.exception()!r}")
        raise
