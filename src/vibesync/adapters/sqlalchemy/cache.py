"""SQLite-backed like cache for cold starts."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from vibesync.domain.model import LikeSnapshot
from vibesync.domain.ports import LikeStateCache

from .mappings import ANONYMOUS_VIEWER, create_all_tables, like_cache_table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from vibesync.domain.model import StateKey

log = getLogger(__name__)


def _viewer_column_value(key: StateKey) -> str:
    return key.viewer_id or ANONYMOUS_VIEWER


class SqlAlchemyLikeStateCache:
    """Persist the last settled like state per subject and viewer.

    Storage failures are logged and otherwise ignored: a missing cache only costs the
    instant first paint.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._ready = False

    @classmethod
    def from_uri(cls, uri: str) -> SqlAlchemyLikeStateCache:
        return cls(create_engine(uri, future=True))

    @property
    def engine(self) -> Engine:
        return self._engine

    def load(self, key: StateKey) -> LikeSnapshot | None:
        statement = select(like_cache_table.c.is_liked, like_cache_table.c.likes_count).where(
            like_cache_table.c.subject_id == key.subject_id,
            like_cache_table.c.viewer_id == _viewer_column_value(key),
        )
        try:
            self._ensure_schema()
            with self._engine.connect() as connection:
                row = connection.execute(statement).first()
        except SQLAlchemyError as exc:
            log.warning("Reading like cache for %s failed: %s", key, exc)
            return None
        if row is None:
            return None
        return LikeSnapshot(is_liked=bool(row.is_liked), likes_count=max(0, row.likes_count))

    def save(self, key: StateKey, snapshot: LikeSnapshot) -> None:
        values = {
            "is_liked": snapshot.is_liked,
            "likes_count": snapshot.likes_count,
            "updated_at": datetime.now(UTC),
        }
        viewer = _viewer_column_value(key)
        try:
            self._ensure_schema()
            with self._engine.begin() as connection:
                result = connection.execute(
                    update(like_cache_table)
                    .where(
                        like_cache_table.c.subject_id == key.subject_id,
                        like_cache_table.c.viewer_id == viewer,
                    )
                    .values(**values)
                )
                if result.rowcount == 0:
                    connection.execute(
                        insert(like_cache_table).values(
                            subject_id=key.subject_id, viewer_id=viewer, **values
                        )
                    )
        except SQLAlchemyError as exc:
            log.warning("Writing like cache for %s failed: %s", key, exc)

    def dispose(self) -> None:
        self._engine.dispose()

    def _ensure_schema(self) -> None:
        if self._ready:
            return
        create_all_tables(self._engine)
        self._ready = True


if TYPE_CHECKING:
    _cache_check: LikeStateCache = SqlAlchemyLikeStateCache.from_uri("sqlite://")
