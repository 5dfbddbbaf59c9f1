"""Debouncing for free-text search input"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    Calls ``action`` with the latest value once input has been quiet for ``delay_ms``.

    Each ``trigger`` restarts the wait; only the last value of a burst is
    delivered. Must be used from within a running event loop.
    """

    def __init__(self, action: Callable[[T], Awaitable[object]], delay_ms: int):
        self.action = action
        self.delay_ms = delay_ms
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, value: T) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire(value))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Wait for the scheduled call, if any, to finish"""
        if self._task is not None:
            await self._task

    async def _fire(self, value: T) -> None:
        await asyncio.sleep(self.delay_ms / 1000)
        try:
            await self.action(value)
        except Exception as e:
            logging.error(f"Debounced action failed: {e}")
            raise
