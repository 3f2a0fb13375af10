# services/background.py
from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Dict, Hashable

logger = logging.getLogger("uvicorn")


class BackgroundRunner:
    """
    Keeps references to detached asyncio tasks (one per key) so they are not
    garbage-collected mid-flight and shutdown can wait for them.
    Usage:
        runner = BackgroundRunner()
        runner.spawn(invoice.id, pipeline.run_generation(invoice.id))
        await runner.drain()
    """

    def __init__(self):
        self._tasks: Dict[Hashable, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._tasks

    def spawn(self, key: Hashable, coro: Awaitable) -> asyncio.Task:
        if key in self._tasks:
            coro.close()
            raise RuntimeError(f"A background task for {key} is already running")
        task = asyncio.create_task(coro, name=f"bg-{key}")
        self._tasks[key] = task
        task.add_done_callback(lambda t, k=key: self._done(k, t))
        return task

    def _done(self, key: Hashable, task: asyncio.Task) -> None:
        self._tasks.pop(key, None)
        if task.cancelled():
            logger.warning(f"[background] task {key} cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"[background] task {key} crashed: {exc!r}", exc_info=exc)

    async def drain(self, timeout: float | None = None) -> bool:
        """Wait for all current tasks. Returns False if the timeout hit first."""
        pending = list(self._tasks.values())
        if not pending:
            return True
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        return not not_done

    async def shutdown(self, grace_seconds: float) -> None:
        if await self.drain(timeout=grace_seconds):
            return
        leftover = list(self._tasks.values())
        logger.warning(f"[background] cancelling {len(leftover)} task(s) still running after {grace_seconds}s")
        for t in leftover:
            t.cancel()
        await asyncio.gather(*leftover, return_exceptions=True)
