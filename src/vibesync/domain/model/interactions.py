"""Interaction entities and reconciliation state.

Subjects and comment records mirror what the remote service stores.
``ReconciliationState`` and ``CommentThread`` are client-side views that the reconcilers
keep in the ``InteractionStore``; they are immutable and replaced on every write, so two
readers of the same key always share one object.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from .enums import ErrorCode, SyncPhase

if TYPE_CHECKING:
    from datetime import datetime


class StateTransitionError(RuntimeError):
    """Raised when a state write would move between phases that cannot follow each other."""

    def __init__(self, source: SyncPhase, target: SyncPhase) -> None:
        super().__init__(f"Illegal reconciliation transition {source} -> {target}")
        self.source = source
        self.target = target


_ALLOWED_TRANSITIONS: dict[SyncPhase, frozenset[SyncPhase]] = {
    SyncPhase.IDLE: frozenset({SyncPhase.IDLE, SyncPhase.OPTIMISTIC, SyncPhase.RECONCILING}),
    SyncPhase.RECONCILING: frozenset(
        {SyncPhase.IDLE, SyncPhase.RECONCILING, SyncPhase.OPTIMISTIC, SyncPhase.ROLLED_BACK}
    ),
    SyncPhase.OPTIMISTIC: frozenset(
        {SyncPhase.OPTIMISTIC, SyncPhase.IDLE, SyncPhase.ROLLED_BACK}
    ),
    SyncPhase.ROLLED_BACK: frozenset(
        {SyncPhase.ROLLED_BACK, SyncPhase.OPTIMISTIC, SyncPhase.RECONCILING, SyncPhase.IDLE}
    ),
}


def can_transition(source: SyncPhase, target: SyncPhase) -> bool:
    return target in _ALLOWED_TRANSITIONS[source]


@dataclass(slots=True, frozen=True)
class StateKey:
    subject_id: str
    viewer_id: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.viewer_id is None

    def __str__(self) -> str:
        return f"{self.subject_id}:{self.viewer_id or 'anonymous'}"


@dataclass(slots=True, frozen=True)
class InteractionSubject:
    """A post (vibe) that can receive likes and comments."""

    id: str
    likes_count: int = 0
    comments_count: int = 0
    profile_id: str | None = None


@dataclass(slots=True, frozen=True)
class LikeStatus:
    """Authoritative like answer returned by the remote service."""

    count: int
    has_liked: bool = False


@dataclass(slots=True, frozen=True)
class LikeSnapshot:
    is_liked: bool
    likes_count: int


@dataclass(slots=True, frozen=True)
class CommentRecord:
    id: str
    viewer_id: str
    subject_id: str
    text: str
    created_at: datetime
    is_optimistic: bool = False


@dataclass(slots=True, frozen=True, kw_only=True)
class ReconciliationState:
    is_liked: bool = False
    likes_count: int = 0
    is_updating: bool = False
    error: ErrorCode | None = None
    last_updated: int = 0
    phase: SyncPhase = SyncPhase.IDLE

    def __post_init__(self) -> None:
        if self.likes_count < 0:
            raise ValueError(f"likes_count must be non-negative, got {self.likes_count}")

    @property
    def snapshot(self) -> LikeSnapshot:
        return LikeSnapshot(is_liked=self.is_liked, likes_count=self.likes_count)

    def evolve(self, **changes: object) -> ReconciliationState:
        return replace(self, **changes)  # pyright: ignore[reportArgumentType]


@dataclass(slots=True, frozen=True, kw_only=True)
class CommentThread:
    """Visible comment list of one subject, newest first."""

    subject_id: str
    comments: tuple[CommentRecord, ...] = field(default_factory=tuple)
    comments_count: int = 0
    is_loading: bool = False
    error: ErrorCode | None = None
    last_updated: int = 0

    def find(self, comment_id: str) -> CommentRecord | None:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None

    def prepend(self, comment: CommentRecord) -> CommentThread:
        return replace(self, comments=(comment, *self.comments))

    def without(self, comment_id: str) -> CommentThread:
        return replace(
            self,
            comments=tuple(comment for comment in self.comments if comment.id != comment_id),
        )

    def replacing(self, comment_id: str, comment: CommentRecord) -> CommentThread:
        """Swap ``comment_id`` for ``comment`` in place, or prepend it if it is gone."""

        if self.find(comment_id) is None:
            return self.prepend(comment)
        return replace(
            self,
            comments=tuple(comment if item.id == comment_id else item for item in self.comments),
        )

    @property
    def pending(self) -> tuple[CommentRecord, ...]:
        return tuple(comment for comment in self.comments if comment.is_optimistic)

    def evolve(self, **changes: object) -> CommentThread:
        return replace(self, **changes)  # pyright: ignore[reportArgumentType]
