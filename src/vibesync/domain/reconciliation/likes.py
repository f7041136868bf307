"""Optimistic like toggling reconciled against the remote service.

Per subject, the reconciler keeps at most one toggle in flight and at most one refresh in
flight per viewer. Reads never overwrite a subject while a toggle is pending or after a newer
toggle started (tracked by a per-subject write generation). A toggle that fails restores the
exact pre-toggle snapshot.
"""

from __future__ import annotations

import asyncio
import functools
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from vibesync.config.sync import ConflictPolicy, SyncConfig
from vibesync.domain.errors import InteractionError, Unauthenticated
from vibesync.domain.model import (
    ErrorCode,
    LikeSnapshot,
    LikeStatus,
    ReconciliationState,
    StateKey,
    SyncPhase,
)
from vibesync.domain.ports.persistence import NullLikeStateCache

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from vibesync.domain.ports import InteractionService, LikeStateCache

    from .store import InteractionStore, Subscription

log = getLogger(__name__)

_SETTLED_PHASES = frozenset({SyncPhase.IDLE, SyncPhase.ROLLED_BACK})


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, eq=False)
class _WriteFlight:
    key: StateKey
    base: LikeSnapshot
    request: asyncio.Future[LikeStatus]
    superseded: bool = False


class LikeReconciler:
    def __init__(
        self,
        *,
        service: InteractionService,
        store: InteractionStore,
        cache: LikeStateCache | None = None,
        config: SyncConfig | None = None,
    ) -> None:
        self._service = service
        self._store = store
        self._cache = cache or NullLikeStateCache()
        self._config = config or SyncConfig()
        self._writes: dict[str, _WriteFlight] = {}
        self._write_generation: defaultdict[str, int] = defaultdict(int)
        self._reads: dict[StateKey, asyncio.Task[None]] = {}
        self._background: set[asyncio.Task[None]] = set()

    def is_writing(self, subject_id: str) -> bool:
        return subject_id in self._writes

    def get_state(
        self,
        subject_id: str,
        viewer_id: str | None = None,
        *,
        initial_count: int = 0,
        initial_liked: bool = False,
    ) -> ReconciliationState:
        """Return the cached state without blocking.

        The first call for a key builds the state from the local cache, falling back to the
        given initial values, and schedules a background refresh.
        """

        key = StateKey(subject_id, viewer_id)
        state = self._store.get_like(key)
        if state is not None:
            return state
        state = self._create_state(key, initial_count=initial_count, initial_liked=initial_liked)
        self._spawn(self.refresh(subject_id, viewer_id))
        return state

    def observe(
        self,
        subject_id: str,
        viewer_id: str | None,
        listener: Callable[[StateKey, ReconciliationState], None],
        *,
        initial_count: int = 0,
        initial_liked: bool = False,
    ) -> Subscription:
        subscription = self._store.subscribe(StateKey(subject_id, viewer_id), listener)
        self.get_state(
            subject_id,
            viewer_id,
            initial_count=initial_count,
            initial_liked=initial_liked,
        )
        return subscription

    async def toggle_like(self, subject_id: str, viewer_id: str | None) -> bool:
        """Flip the viewer's like optimistically and reconcile with the remote answer.

        Returns ``True`` when the remote confirmed the toggle. Remote failures never raise:
        the state is rolled back and ``error`` is set instead.
        """

        if not viewer_id:
            raise Unauthenticated("Please log in to like vibes")

        key = StateKey(subject_id, viewer_id)
        current = self._store.get_like(key) or self._create_state(key)
        previous = self._writes.get(subject_id)
        if previous is not None:
            # Only the same viewer may supersede; the rollback base belongs to previous.key.
            if (
                self._config.conflict_policy is ConflictPolicy.DROP
                or previous.key != key
            ):
                log.debug("Dropping toggle for %s: another toggle is in flight", key)
                return False
            log.debug("Superseding in-flight toggle for %s", key)
            previous.superseded = True
            previous.request.cancel()
            base = previous.base
        else:
            base = current.snapshot

        if current.is_liked:
            target = LikeSnapshot(is_liked=False, likes_count=max(0, current.likes_count - 1))
        else:
            target = LikeSnapshot(is_liked=True, likes_count=current.likes_count + 1)
        self._write(
            key,
            current.evolve(
                is_liked=target.is_liked,
                likes_count=target.likes_count,
                is_updating=True,
                error=None,
                phase=SyncPhase.OPTIMISTIC,
            ),
        )

        request = asyncio.ensure_future(
            self._service.toggle_like(
                subject_id=subject_id,
                viewer_id=viewer_id,
                timestamp=_utcnow(),
            )
        )
        flight = _WriteFlight(key=key, base=base, request=request)
        self._writes[subject_id] = flight
        self._write_generation[subject_id] += 1

        try:
            status = await asyncio.wait_for(
                request, timeout=self._config.mutation_timeout_seconds
            )
        except asyncio.CancelledError:
            if flight.superseded:
                log.debug("Toggle for %s superseded by a newer toggle", key)
                return False
            self._roll_back(flight, error=None)
            raise
        except TimeoutError:
            log.warning(
                "Toggle for %s timed out after %.1fs, rolling back",
                key,
                self._config.mutation_timeout_seconds,
            )
            self._roll_back(flight, error=ErrorCode.TIMEOUT)
            return False
        except InteractionError as exc:
            if exc.code.is_transient:
                log.warning("Toggle for %s failed (%s), rolling back: %s", key, exc.code, exc)
            else:
                log.error("Toggle for %s rejected (%s): %s", key, exc.code, exc)
            self._roll_back(flight, error=exc.code)
            return False
        except Exception:
            log.exception("Unexpected error while toggling like for %s", key)
            self._roll_back(flight, error=ErrorCode.UNEXPECTED)
            return False
        finally:
            if self._writes.get(subject_id) is flight:
                del self._writes[subject_id]

        if flight.superseded:
            log.debug("Discarding answer of superseded toggle for %s", key)
            return False

        self._update(
            key,
            is_liked=status.has_liked,
            likes_count=max(0, status.count),
            is_updating=False,
            error=None,
            phase=SyncPhase.IDLE,
        )
        return True

    async def refresh(self, subject_id: str, viewer_id: str | None = None) -> None:
        """Overwrite the local state with the remote answer unless a toggle is pending.

        Concurrent refreshes of the same key share one request.
        """

        key = StateKey(subject_id, viewer_id)
        if self.is_writing(subject_id):
            log.debug("Skipping refresh of %s: toggle in flight", key)
            return

        task = self._reads.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._read(key))
            self._reads[key] = task
            task.add_done_callback(functools.partial(self._forget_read, key))
        await asyncio.shield(task)

    async def aclose(self) -> None:
        """Cancel background refreshes and reads still running."""

        pending = [*self._background, *self._reads.values()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _read(self, key: StateKey) -> None:
        if self.is_writing(key.subject_id):
            return
        generation = self._write_generation[key.subject_id]
        before = self._store.get_like(key) or self._create_state(key)
        self._write(key, before.evolve(phase=SyncPhase.RECONCILING))

        try:
            status = await self._service.fetch_likes(
                subject_id=key.subject_id,
                viewer_id=key.viewer_id,
            )
        except InteractionError as exc:
            log.warning("Refresh of %s failed (%s): %s", key, exc.code, exc)
            self._settle_failed_read(key, generation, before.phase)
            return
        except Exception:
            log.exception("Unexpected error while refreshing %s", key)
            self._settle_failed_read(key, generation, before.phase)
            return

        if self._is_stale(key, generation):
            log.debug("Discarding refresh of %s: a toggle started meanwhile", key)
            return
        self._update(
            key,
            is_liked=status.has_liked and not key.is_anonymous,
            likes_count=max(0, status.count),
            error=None,
            phase=SyncPhase.IDLE,
        )

    def _settle_failed_read(self, key: StateKey, generation: int, phase: SyncPhase) -> None:
        if self._is_stale(key, generation):
            return
        self._update(key, error=ErrorCode.SYNC_FAILED, phase=phase)

    def _is_stale(self, key: StateKey, generation: int) -> bool:
        return (
            self.is_writing(key.subject_id)
            or self._write_generation[key.subject_id] != generation
        )

    def _roll_back(self, flight: _WriteFlight, *, error: ErrorCode | None) -> None:
        self._update(
            flight.key,
            is_liked=flight.base.is_liked,
            likes_count=flight.base.likes_count,
            is_updating=False,
            error=error,
            phase=SyncPhase.ROLLED_BACK,
        )

    def _create_state(
        self,
        key: StateKey,
        *,
        initial_count: int = 0,
        initial_liked: bool = False,
    ) -> ReconciliationState:
        # The cache is a small local SQLite file, read and written on the loop thread.
        cached = self._cache.load(key)
        seed = cached or LikeSnapshot(is_liked=initial_liked, likes_count=initial_count)
        return self._store.put_like(
            key,
            ReconciliationState(
                is_liked=seed.is_liked and not key.is_anonymous,
                likes_count=max(0, seed.likes_count),
            ),
        )

    def _write(self, key: StateKey, state: ReconciliationState) -> None:
        self._remember(key, self._store.put_like(key, state))

    def _update(self, key: StateKey, **changes: object) -> None:
        self._remember(key, self._store.update_like(key, **changes))

    def _remember(self, key: StateKey, stored: ReconciliationState) -> None:
        if stored.phase in _SETTLED_PHASES and not stored.is_updating:
            self._cache.save(key, stored.snapshot)

    def _forget_read(self, key: StateKey, task: asyncio.Task[None]) -> None:
        if self._reads.get(key) is task:
            del self._reads[key]

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            log.debug("No running event loop; background refresh not scheduled")
            return
        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
