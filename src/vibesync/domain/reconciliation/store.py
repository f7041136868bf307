"""In-memory state shared by every view of a subject.

One ``InteractionStore`` is built per session and handed to every reconciler and view
binding. Only the reconcilers write to it; views read and subscribe.
"""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from vibesync.domain.model import (
    CommentThread,
    ReconciliationState,
    StateKey,
    StateTransitionError,
    can_transition,
)

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass(slots=True)
class Subscription:
    """Handle returned by ``subscribe``; closing it stops notifications."""

    _close: Callable[[], None]
    closed: bool = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._close()


class InteractionStore:
    def __init__(self, *, clock: Callable[[], int] = _epoch_millis) -> None:
        self._clock = clock
        self._likes: dict[StateKey, ReconciliationState] = {}
        self._threads: dict[str, CommentThread] = {}
        self._like_listeners: defaultdict[
            StateKey, list[Callable[[StateKey, ReconciliationState], None]]
        ] = defaultdict(list)
        self._thread_listeners: defaultdict[str, list[Callable[[CommentThread], None]]] = (
            defaultdict(list)
        )

    # Likes -------------------------------------------------------------------

    def get_like(self, key: StateKey) -> ReconciliationState | None:
        return self._likes.get(key)

    def put_like(self, key: StateKey, state: ReconciliationState) -> ReconciliationState:
        """Store ``state`` for ``key`` with a fresh ``last_updated`` and notify listeners."""

        previous = self._likes.get(key)
        if previous is not None and not can_transition(previous.phase, state.phase):
            raise StateTransitionError(previous.phase, state.phase)
        stamped = state.evolve(last_updated=self._next_stamp(previous))
        self._likes[key] = stamped
        for listener in tuple(self._like_listeners.get(key, ())):
            try:
                listener(key, stamped)
            except Exception:
                log.exception("Like listener failed for %s", key)
        return stamped

    def update_like(self, key: StateKey, **changes: object) -> ReconciliationState:
        current = self._likes.get(key)
        if current is None:
            raise KeyError(key)
        return self.put_like(key, current.evolve(**changes))

    def subscribe(
        self,
        key: StateKey,
        listener: Callable[[StateKey, ReconciliationState], None],
    ) -> Subscription:
        self._like_listeners[key].append(listener)

        def unsubscribe() -> None:
            listeners = self._like_listeners.get(key)
            if listeners is None:
                return
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                del self._like_listeners[key]

        return Subscription(unsubscribe)

    def observed_keys(self) -> list[StateKey]:
        return [key for key, listeners in self._like_listeners.items() if listeners]

    # Comments ----------------------------------------------------------------

    def get_thread(self, subject_id: str) -> CommentThread:
        thread = self._threads.get(subject_id)
        if thread is None:
            thread = CommentThread(subject_id=subject_id)
            self._threads[subject_id] = thread
        return thread

    def update_thread(
        self,
        subject_id: str,
        func: Callable[[CommentThread], CommentThread],
    ) -> CommentThread:
        previous = self.get_thread(subject_id)
        updated = func(previous)
        stamp = max(self._clock(), previous.last_updated + 1)
        updated = updated.evolve(last_updated=stamp)
        self._threads[subject_id] = updated
        for listener in tuple(self._thread_listeners.get(subject_id, ())):
            try:
                listener(updated)
            except Exception:
                log.exception("Comment listener failed for %s", subject_id)
        return updated

    def subscribe_thread(
        self,
        subject_id: str,
        listener: Callable[[CommentThread], None],
    ) -> Subscription:
        self._thread_listeners[subject_id].append(listener)

        def unsubscribe() -> None:
            listeners = self._thread_listeners.get(subject_id)
            if listeners is None:
                return
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                del self._thread_listeners[subject_id]

        return Subscription(unsubscribe)

    def _next_stamp(self, previous: ReconciliationState | None) -> int:
        now = self._clock()
        if previous is None:
            return now
        return max(now, previous.last_updated + 1)
