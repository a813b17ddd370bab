"""Bounded, cancellable waits on asynchronous signals."""

import asyncio
from collections.abc import Awaitable


async def wait_until(
    signal: Awaitable[object],
    *,
    timeout: float,
    cancellation: asyncio.Event | None = None,
) -> bool:
    """Wait for ``signal`` for at most ``timeout`` seconds.

    The wait ends early when ``cancellation`` is set. A future passed as
    ``signal`` is never cancelled, its owner keeps its state. A coroutine
    is wrapped in a task that is cancelled if it is still pending when the
    wait ends.

    Args:
        signal: Future or coroutine to wait on
        timeout: Maximum wait in seconds; values <= 0 only check completion
        cancellation: Event that aborts the wait when set

    Returns:
        True if ``signal`` completed, False on timeout or cancellation

    """
    owned = not asyncio.isfuture(signal)
    task = asyncio.ensure_future(signal)
    waiters: set[asyncio.Future[object]] = {task}
    cancel_waiter: asyncio.Task[bool] | None = None
    if cancellation is not None:
        cancel_waiter = asyncio.ensure_future(cancellation.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(
            waiters,
            timeout=max(timeout, 0),
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()
        # a task wrapped around a coroutine here has no other owner
        if owned and not task.done():
            task.cancel()

    return task in done
