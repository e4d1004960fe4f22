"""Database models for the shared store."""
from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, Integer, LargeBinary, String

from fluentsync.models.base import Base


class TimestampMixin:
    """Mixin for adding an updated_at timestamp."""

    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


class SharedValue(Base, TimestampMixin):
    """One key of the shared store.

    Exactly one of the value columns is set, matching ``value_type``.
    Writing a key replaces the whole row, so a key can change type.
    """

    __tablename__ = "shared_values"

    key = Column(String, primary_key=True)
    value_type = Column(String, nullable=False)
    int_value = Column(Integer, nullable=True)
    timestamp_value = Column(DateTime(timezone=True), nullable=True)
    bytes_value = Column(LargeBinary, nullable=True)
