"""SQLAlchemy adapter package for the local like cache."""

from __future__ import annotations

from .cache import SqlAlchemyLikeStateCache
from .mappings import ANONYMOUS_VIEWER, cache_metadata, create_all_tables, like_cache_table

__all__ = [
    "ANONYMOUS_VIEWER",
    "SqlAlchemyLikeStateCache",
    "cache_metadata",
    "create_all_tables",
    "like_cache_table",
]
