"""Domain model for likes, comments and their reconciliation state."""

from __future__ import annotations

from .enums import CounterShape, ErrorCode, SyncPhase
from .interactions import (
    CommentRecord,
    CommentThread,
    InteractionSubject,
    LikeSnapshot,
    LikeStatus,
    ReconciliationState,
    StateKey,
    StateTransitionError,
    can_transition,
)

__all__ = [
    "CommentRecord",
    "CommentThread",
    "CounterShape",
    "ErrorCode",
    "InteractionSubject",
    "LikeSnapshot",
    "LikeStatus",
    "ReconciliationState",
    "StateKey",
    "StateTransitionError",
    "SyncPhase",
    "can_transition",
]
