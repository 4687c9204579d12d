"""
Delayed, cancellable persistence of the active project.
"""
import asyncio
from typing import Awaitable, Callable, Optional

from devassist.config.app_config import SAVE_DEBOUNCE_SECONDS
from devassist.utils.logging_utils import logger


class SaveScheduler:
    """
    Runs the save callback once after a short delay.

    Scheduling again replaces a pending save. flush() saves immediately and
    drops whatever is pending, so nothing is lost when the user switches
    projects right after a response settles. Writes never overlap: a write
    that already started finishes before the next one begins.
    """

    def __init__(self, save: Callable[[], Awaitable[bool]], delay: float = SAVE_DEBOUNCE_SECONDS):
        self._save = save
        self.delay = delay
        self._task: Optional[asyncio.Task] = None
        self._writing: Optional[asyncio.Future] = None
        self._lock = asyncio.Lock()

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        """Drop the pending save. A write that already started keeps running."""
        if self.pending:
            self._task.cancel()
            logger.debug("Pending save cancelled")
        self._task = None

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        # Cancelling the task from here on leaves the write itself running
        self._writing = asyncio.ensure_future(self._write())
        await asyncio.shield(self._writing)

    async def _write(self) -> bool:
        async with self._lock:
            return await self._save()

    async def flush(self) -> bool:
        self.cancel()
        return await self._write()

    async def drain(self) -> None:
        """Drop the pending save and wait until no write is running."""
        self.cancel()
        if self._writing is not None and not self._writing.done():
            await asyncio.wait([self._writing])
        async with self._lock:
            pass
