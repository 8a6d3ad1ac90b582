"""Tracked fire-and-forget tasks for cache population."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from mediacache.errors.exceptions import CacheWriteError

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Holds strong references to detached tasks until they finish.

    Task failures are logged, never re-raised to whoever spawned the task.
    ``drain()`` lets shutdown (and tests) wait for pending writes.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def drain(self) -> None:
        """Wait until every spawned task, including ones spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.drain()

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        if isinstance(exc, CacheWriteError):
            logger.warning("Cache population failed: %s", exc.message)
        else:
            logger.error("Background task %s failed", task.get_name(), exc_info=exc)
