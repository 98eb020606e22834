"""Keyed debouncing of writes triggered by typing."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from functools import partial

logger = logging.getLogger(__name__)


class Debouncer:
    """Collapses a burst of calls per key into one call after a quiet window.

    Each ``schedule`` for a key restarts that key's window and replaces
    the action; only the last action of a burst runs. Pending actions can
    be cancelled, e.g. when the entity they would write is deleted.
    """

    def __init__(self, wait_seconds: float) -> None:
        self.wait_seconds = wait_seconds
        self._pending: dict[Hashable, asyncio.Task] = {}
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> set[Hashable]:
        """Keys with an action waiting for its quiet window."""
        return set(self._pending)

    def schedule(self, key: Hashable, action: Callable[[], Awaitable[None]]) -> None:
        """(Re)start the quiet window for ``key`` with ``action``."""
        self.cancel(key)
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(key, action))
        task.add_done_callback(partial(self._log_failure, key))
        self._pending[key] = task

    @staticmethod
    def _log_failure(key: Hashable, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Debounced write {key!r} failed: {error!r}", exc_info=error)

    async def _run(self, key: Hashable, action: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.wait_seconds)
        task = asyncio.current_task()
        if self._pending.get(key) is task:
            del self._pending[key]
        self._running.add(task)
        try:
            await action()
        finally:
            self._running.discard(task)

    def cancel(self, key: Hashable) -> bool:
        """Drop the pending action for ``key``; True if one was pending."""
        task = self._pending.pop(key, None)
        if task is None:
            return False
        task.cancel()
        logger.debug(f"Cancelled pending write {key!r}")
        return True

    def cancel_matching(self, predicate: Callable[[Hashable], bool]) -> int:
        """Cancel every pending action whose key satisfies ``predicate``."""
        keys = [key for key in self._pending if predicate(key)]
        for key in keys:
            self.cancel(key)
        return len(keys)

    def cancel_all(self) -> int:
        """Cancel everything pending."""
        return self.cancel_matching(lambda _key: True)

    async def flush(self) -> None:
        """Wait until every pending action has run (or been cancelled)."""
        while self._pending or self._running:
            tasks = [*self._pending.values(), *self._running]
            await asyncio.gather(*tasks, return_exceptions=True)
