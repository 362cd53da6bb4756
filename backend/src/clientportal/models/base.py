"""Base SQLAlchemy declarative base and portable column types for all models"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, TypeDecorator
from sqlalchemy.orm import declarative_base


def generate_id() -> str:
    """Primary key default: UUID4 rendered as text."""
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that works with both PostgreSQL and SQLite.

    PostgreSQL stores TIMESTAMPTZ natively. SQLite drops tzinfo on read,
    so naive values coming back from the driver are re-tagged as UTC.
    Naive values going in are assumed to already be UTC.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


Base = declarative_base()
