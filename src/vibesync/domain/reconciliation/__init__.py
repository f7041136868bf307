"""Reconciliation of optimistic like and comment state against the remote service."""

from __future__ import annotations

from .comments import CommentReconciler, normalize_comment_text
from .likes import LikeReconciler
from .resync import ResyncScheduler
from .store import InteractionStore, Subscription

__all__ = [
    "CommentReconciler",
    "InteractionStore",
    "LikeReconciler",
    "ResyncScheduler",
    "Subscription",
    "normalize_comment_text",
]
