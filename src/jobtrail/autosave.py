"""Debounced write-behind for the resume document."""
from __future__ import annotations

import asyncio
import copy
from typing import Optional

from .log import get_logger
from .persistence import ResumeService
from .resume import Resume

log = get_logger(__name__)

DEFAULT_DELAY = 2.0


class ResumeAutosave:
    """Persist the resume once edits have been quiet for ``delay`` seconds.

    Each :meth:`schedule` call restarts the timer, so a burst of edits yields a
    single save carrying the last state. A document still equal to the blank
    default is never written.
    """

    def __init__(self, service: ResumeService, *, delay: float = DEFAULT_DELAY) -> None:
        self.service = service
        self.delay = delay
        self._timer: Optional[asyncio.Task] = None
        self._snapshot: Optional[Resume] = None
        self._save_lock = asyncio.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def schedule(self, resume: Resume) -> None:
        """Record the latest document state and (re)arm the save timer."""

        self._snapshot = copy.deepcopy(resume)
        if self.pending:
            self._timer.cancel()  # type: ignore[union-attr]
        self._timer = asyncio.get_running_loop().create_task(self._save_later())

    def cancel(self) -> None:
        if self.pending:
            self._timer.cancel()  # type: ignore[union-attr]
        self._timer = None
        self._snapshot = None

    async def flush(self) -> bool:
        """Save the pending snapshot now instead of waiting for the timer.

        Returns True only when a document was written to the service.
        """

        if self.pending:
            self._timer.cancel()  # type: ignore[union-attr]
        self._timer = None
        return await self._save()

    async def _save_later(self) -> None:
        await asyncio.sleep(self.delay)
        # past the quiet period; later edits arm a new timer instead of cancelling this save
        self._timer = None
        await self._save()

    async def _save(self) -> bool:
        snapshot, self._snapshot = self._snapshot, None
        if snapshot is None:
            return False
        if snapshot.is_blank():
            log.debug("Skipping autosave of blank resume")
            return False
        async with self._save_lock:
            try:
                await self.service.save_resume(snapshot.to_record())
            except Exception as exc:
                log.error("Resume autosave failed: %s", exc)
                return False
        log.debug("Resume saved for %s", snapshot.full_name or "unnamed user")
        return True
