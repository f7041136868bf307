"""Public interface for the remote interaction service adapter."""

from __future__ import annotations

from .client import HttpInteractionService, raise_for_status
from .schema import CommentPayload, LikeStatusPayload, SubjectPayload
from .translator import parse_comment, parse_like_status, parse_subject

__all__ = [
    "CommentPayload",
    "HttpInteractionService",
    "LikeStatusPayload",
    "SubjectPayload",
    "parse_comment",
    "parse_like_status",
    "parse_subject",
    "raise_for_status",
]
