from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, event
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(32))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class TimestampedIdBase(Base):
    """Abstract entity with a generated string id and bookkeeping timestamps.

    Plain declarative (not dataclass) mapping, so rows can be built from
    request payloads with ``Entity(**values)``.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    create_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_update_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


@event.listens_for(TimestampedIdBase, "before_update", propagate=True)
def _touch_last_update_at(mapper, connection, target) -> None:
    target.last_update_at = utcnow()
