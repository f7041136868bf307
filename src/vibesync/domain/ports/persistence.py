"""Port for the local persistent like cache."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vibesync.domain.model import LikeSnapshot, StateKey


@runtime_checkable
class LikeStateCache(Protocol):
    """Best-effort key/value storage of the last known like state.

    Implementations swallow their own storage failures; callers never see an exception.
    """

    def load(self, key: StateKey) -> LikeSnapshot | None: ...

    def save(self, key: StateKey, snapshot: LikeSnapshot) -> None: ...


class NullLikeStateCache:
    """Cache that remembers nothing, for sessions without local storage."""

    def load(self, key: StateKey) -> LikeSnapshot | None:
        del key
        return None

    def save(self, key: StateKey, snapshot: LikeSnapshot) -> None:
        del key, snapshot


__all__ = ["LikeStateCache", "NullLikeStateCache"]
