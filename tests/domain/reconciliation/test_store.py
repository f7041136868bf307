from __future__ import annotations

import pytest

from tests.support.interactions import make_comment
from vibesync.domain.model import (
    CommentThread,
    ReconciliationState,
    StateKey,
    StateTransitionError,
    SyncPhase,
)
from vibesync.domain.reconciliation import InteractionStore

KEY = StateKey("V1", "U1")


def test_put_like_stamps_strictly_increasing_timestamps() -> None:
    store = InteractionStore(clock=lambda: 500)

    first = store.put_like(KEY, ReconciliationState(likes_count=1))
    second = store.update_like(KEY, likes_count=2)

    assert first.last_updated == 500
    assert second.last_updated == 501
    assert store.get_like(KEY) is second


def test_illegal_transition_is_rejected(store: InteractionStore) -> None:
    store.put_like(KEY, ReconciliationState())

    with pytest.raises(StateTransitionError) as excinfo:
        store.update_like(KEY, phase=SyncPhase.ROLLED_BACK)

    assert excinfo.value.source is SyncPhase.IDLE
    assert excinfo.value.target is SyncPhase.ROLLED_BACK
    assert store.get_like(KEY).phase is SyncPhase.IDLE  # type: ignore[union-attr]


def test_update_of_unknown_key_raises(store: InteractionStore) -> None:
    with pytest.raises(KeyError):
        store.update_like(KEY, likes_count=1)


def test_subscribers_are_notified_until_closed(store: InteractionStore) -> None:
    seen: list[int] = []
    subscription = store.subscribe(KEY, lambda _key, state: seen.append(state.likes_count))

    store.put_like(KEY, ReconciliationState(likes_count=1))
    assert store.observed_keys() == [KEY]
    subscription.close()
    subscription.close()
    store.update_like(KEY, likes_count=2)

    assert seen == [1]
    assert store.observed_keys() == []


def test_failing_listener_does_not_break_writes(store: InteractionStore) -> None:
    seen: list[int] = []

    def broken(_key: StateKey, _state: ReconciliationState) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(KEY, broken)
    store.subscribe(KEY, lambda _key, state: seen.append(state.likes_count))

    store.put_like(KEY, ReconciliationState(likes_count=3))

    assert seen == [3]


def test_views_share_one_state_object(store: InteractionStore) -> None:
    store.put_like(KEY, ReconciliationState(likes_count=3))

    assert store.get_like(KEY) is store.get_like(StateKey("V1", "U1"))
    assert store.get_like(StateKey("V1")) is None


def test_thread_updates_notify_and_stamp(store: InteractionStore) -> None:
    threads: list[CommentThread] = []
    store.subscribe_thread("V1", threads.append)

    empty = store.get_thread("V1")
    updated = store.update_thread(
        "V1", lambda thread: thread.prepend(make_comment("c1")).evolve(comments_count=1)
    )

    assert empty.comments == ()
    assert updated.comments_count == 1
    assert updated.last_updated > empty.last_updated
    assert threads == [updated]
