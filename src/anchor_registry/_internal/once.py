"""Once — run an async setup coroutine exactly once across concurrent callers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable


def _consume_exception(task: asyncio.Task[None]) -> None:
    # Every waiter may have been cancelled before the setup failed.
    if not task.cancelled():
        task.exception()


class Once:
    """A one-shot latch around an async setup function.

    The first caller of :meth:`wait` starts the setup as a task; every
    caller, the first included, awaits that same task.  Once it succeeds all
    later calls return immediately.  If it fails, every waiter receives the
    exception and the latch goes back to "not started" so the next call
    retries.

    Waiters are shielded from each other: cancelling one caller does not
    cancel the shared setup.
    """

    def __init__(self, setup: Callable[[], Awaitable[None]]) -> None:
        self._setup = setup
        self._task: asyncio.Task[None] | None = None
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    async def wait(self) -> None:
        if self._done:
            return
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
            self._task.add_done_callback(_consume_exception)
        await asyncio.shield(self._task)

    async def _run(self) -> None:
        try:
            await self._setup()
        except BaseException:
            self._task = None
            raise
        self._done = True
