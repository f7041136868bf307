"""Ports implemented by adapters and consumed by the reconcilers."""

from __future__ import annotations

from .persistence import LikeStateCache, NullLikeStateCache
from .remote import CommentPage, InteractionService

__all__ = ["CommentPage", "InteractionService", "LikeStateCache", "NullLikeStateCache"]
