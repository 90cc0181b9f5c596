from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Set

from loguru import logger


class Lifetime:
    """
    Generation counter tied to the owning session.

    Async work captures :meth:`token` when it starts and checks
    :meth:`is_current` when it finishes; anything that resolves after
    :meth:`end` (or after a newer generation started) is ignored.
    """

    def __init__(self) -> None:
        self.generation = 0
        self.closed = False
        self._tasks: Set[asyncio.Task] = set()

    def token(self) -> int:
        return self.generation

    def is_current(self, token: int) -> bool:
        return not self.closed and token == self.generation

    def end(self) -> None:
        self.closed = True
        self.generation += 1

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Run ``coro`` in the background on the running loop, keeping a reference."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for background work to settle (tests, shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        logger.debug("Background work drained")
