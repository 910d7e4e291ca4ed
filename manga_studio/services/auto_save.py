"""Debounced auto-save for an editing session.

Each edit calls ``touch()``, which restarts the timer; the save callback runs
once the editor has been quiet for the configured delay. Only the waiting
timer is ever cancelled: a save that has started writing runs to completion,
and saves never overlap. The core service only offers save primitives; the
scheduling policy lives here.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from manga_studio.infra import config

logger = logging.getLogger(__name__)


class AutoSaveScheduler:
    def __init__(
        self,
        save: Callable[[], Awaitable[None]],
        delay: float | None = None,
    ) -> None:
        self._save = save
        self._delay = delay
        self._task: asyncio.Task | None = None
        self._writing: asyncio.Task | None = None
        self._lock = asyncio.Lock()
        self._generation = 0
        self._saved_generation = 0
        self.last_error: Exception | None = None

    @property
    def delay(self) -> float:
        return self._delay if self._delay is not None else config.AUTO_SAVE_DELAY_SECONDS

    @property
    def dirty(self) -> bool:
        return self._generation != self._saved_generation

    @property
    def pending(self) -> bool:
        return (self._task is not None and not self._task.done()) or self._writing is not None

    def touch(self) -> None:
        """Record an edit and restart the debounce timer."""
        self._generation += 1
        self.cancel()
        self._task = asyncio.create_task(self._save_after_delay())

    def cancel(self) -> None:
        """Drop the pending timer; the session stays dirty.

        A save already writing is left to finish on its own.
        """
        task = self._task
        if task is not None and not task.done() and task is not self._writing:
            task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Save immediately if there are unsaved edits. Errors propagate.

        Waits for an in-flight save first.
        """
        self.cancel()
        async with self._lock:
            if self.dirty:
                await self._run_save()

    async def _save_after_delay(self) -> None:
        await asyncio.sleep(self.delay)
        async with self._lock:
            self._writing = asyncio.current_task()
            try:
                await self._run_save()
            except Exception:
                logger.exception("Auto-save failed; will retry on next edit")
            finally:
                self._writing = None

    async def _run_save(self) -> None:
        generation = self._generation
        try:
            await self._save()
        except Exception as e:
            self.last_error = e
            raise
        self.last_error = None
        self._saved_generation = max(self._saved_generation, generation)
