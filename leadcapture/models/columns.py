"""
Column types shared by the models.
JSON payloads are stored as JSONB on PostgreSQL and plain JSON elsewhere (SQLite in tests).
Timestamps are timezone-aware UTC (timestamptz on PostgreSQL).
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime
from sqlalchemy.dialects.postgresql import JSONB

JSONVariant = JSON().with_variant(JSONB(), "postgresql")

TZDateTime = DateTime(timezone=True)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
