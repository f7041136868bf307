"""SQLAlchemy table metadata for the local like cache."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Column, DateTime, Integer, MetaData, String, Table, TypeDecorator

if TYPE_CHECKING:
    from sqlalchemy import Dialect
    from sqlalchemy.engine import Engine

ANONYMOUS_VIEWER = ""


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware timestamps; SQLite hands back naive values, which are read as UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        del dialect
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC) if value is not None else None

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        del dialect
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


cache_metadata = MetaData(naming_convention={"pk": "pk_%(table_name)s"})

like_cache_table = Table(
    "like_cache",
    cache_metadata,
    Column("subject_id", String, primary_key=True),
    # Anonymous viewers are stored as the empty string so the key stays non-null.
    Column("viewer_id", String, primary_key=True, default=ANONYMOUS_VIEWER),
    Column("is_liked", Boolean, nullable=False, default=False),
    Column("likes_count", Integer, nullable=False, default=0),
    Column("updated_at", UTCDateTime, nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    cache_metadata.create_all(engine)
