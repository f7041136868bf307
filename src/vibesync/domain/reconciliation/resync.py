"""Background resynchronisation of observed like states."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from vibesync.config.sync import SyncConfig

if TYPE_CHECKING:
    from vibesync.domain.model import StateKey

    from .likes import LikeReconciler
    from .store import InteractionStore

log = getLogger(__name__)


class ResyncScheduler:
    """Periodically refresh every observed key, collapsing bursts with a debounce.

    The scheduler has an explicit ``start``/``stop`` lifecycle; view bindings call
    ``trigger_all`` on visibility or viewer changes.
    """

    def __init__(
        self,
        *,
        likes: LikeReconciler,
        store: InteractionStore,
        config: SyncConfig | None = None,
    ) -> None:
        self._likes = likes
        self._store = store
        self._config = config or SyncConfig()
        self._ticker: asyncio.Task[None] | None = None
        self._pending: dict[StateKey, asyncio.TimerHandle] = {}
        self._refreshes: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def start(self) -> None:
        if self.running:
            return
        interval = self._config.refresh_interval_seconds
        if interval <= 0:
            log.debug("Periodic resync disabled")
            return
        self._ticker = asyncio.get_running_loop().create_task(
            self._tick(interval), name="vibesync-resync"
        )

    async def stop(self) -> None:
        ticker, self._ticker = self._ticker, None
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()
        tasks = [*self._refreshes]
        if ticker is not None:
            tasks.append(ticker)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def trigger_all(self) -> int:
        """Schedule a debounced refresh of every observed key; returns how many were scheduled."""

        scheduled = 0
        for key in self._store.observed_keys():
            if self.trigger(key):
                scheduled += 1
        return scheduled

    def trigger(self, key: StateKey) -> bool:
        if self._likes.is_writing(key.subject_id):
            log.debug("Resync of %s skipped: toggle in flight", key)
            return False
        loop = asyncio.get_running_loop()
        handle = self._pending.pop(key, None)
        if handle is not None:
            handle.cancel()
        self._pending[key] = loop.call_later(self._config.debounce_seconds, self._fire, key)
        return True

    async def _tick(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            scheduled = self.trigger_all()
            log.debug("Periodic resync scheduled %s refreshes", scheduled)

    def _fire(self, key: StateKey) -> None:
        self._pending.pop(key, None)
        if self._likes.is_writing(key.subject_id):
            log.debug("Resync of %s skipped: toggle in flight", key)
            return
        task = asyncio.get_running_loop().create_task(
            self._likes.refresh(key.subject_id, key.viewer_id)
        )
        self._refreshes.add(task)
        task.add_done_callback(self._settle)

    def _settle(self, task: asyncio.Task[None]) -> None:
        self._refreshes.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.warning("Background resync failed: %s", exc)
