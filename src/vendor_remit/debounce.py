"""Trailing-edge debounce for search-as-you-type lookups."""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class Debouncer:
    """Run an async callback once input has been quiet for `delay` seconds.

    Every trigger() cancels the pending call, if any, and schedules a new one
    with the latest arguments. Must be used from within a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[..., Awaitable[Any]]):
        self._delay = delay
        self._callback = callback
        self._task: asyncio.Task[Any] | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, *args: Any) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire(args))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the pending call, if any, to finish."""
        task = self._task
        if task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _fire(self, args: tuple[Any, ...]) -> None:
        await asyncio.sleep(self._delay)
        try:
            await self._callback(*args)
        except Exception:
            logger.exception("debounced_call_failed")
