"""Shared key-value store read by display processes and written by the host app."""
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from fluentsync import monitoring
from fluentsync.config import settings
from fluentsync.errors import StorageUnavailable
from fluentsync.models.base import create_group_engine, create_session_factory, init_db
from fluentsync.models.models import SharedValue

logger = logging.getLogger(__name__)

# Key namespace, stable across versions
KEY_STREAK = "widget_streak"
KEY_TODAY_POINTS = "widget_todayPoints"
KEY_TOTAL_WORDS = "widget_totalWords"
KEY_LESSONS_COMPLETED = "widget_lessonsCompleted"
KEY_LAST_UPDATE = "widget_lastUpdate"
KEY_WORD_OF_THE_DAY = "widget_wordOfTheDay"
KEY_WORD_OF_THE_DAY_DATE = "widget_wordOfTheDayDate"

# Stored value types
INTEGER = "integer"
TIMESTAMP = "timestamp"
BYTES = "bytes"

# App group identifiers look like reverse-DNS names prefixed with "group."
GROUP_ID_PATTERN = re.compile(r"^group\.[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*$")

T = TypeVar("T")


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of a store operation.

    ``value`` is None when the key is absent, holds another type, or the
    store is unavailable; ``error`` is set only in the last case.
    """
    value: Optional[T] = None
    error: Optional[StorageUnavailable] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default):
        """Return the value, or ``default`` when there is none."""
        if self.value is None:
            return default
        return self.value


def to_utc(value: datetime) -> datetime:
    """Normalize a timestamp to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SharedStore(ABC):
    """Best-effort typed key-value access to one shared storage group.

    Adapters implement ``_load`` and ``_save`` and raise
    ``StorageUnavailable`` when the group cannot be opened. The public
    methods turn that into a ``StoreResult`` so callers always get a value.
    """

    def __init__(self, group_id: str):
        self.group_id = group_id

    @abstractmethod
    def _load(self, key: str) -> Optional[Tuple[str, Any]]:
        """Return ``(value_type, value)`` for ``key`` or None if absent."""

    @abstractmethod
    def _save(self, key: str, value_type: str, value: Any) -> None:
        """Durably replace the value stored under ``key``."""

    # Integers

    def read_integer(self, key: str) -> StoreResult[int]:
        return self._read(key, INTEGER)

    def get_integer(self, key: str) -> int:
        return self.read_integer(key).unwrap_or(0)

    def set_integer(self, key: str, value: int) -> StoreResult[bool]:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Integer value expected for {key}, got {type(value).__name__}")
        return self._write(key, INTEGER, value)

    # Timestamps

    def read_timestamp(self, key: str) -> StoreResult[datetime]:
        return self._read(key, TIMESTAMP)

    def get_timestamp(self, key: str) -> Optional[datetime]:
        return self.read_timestamp(key).unwrap_or(None)

    def set_timestamp(self, key: str, value: datetime) -> StoreResult[bool]:
        if not isinstance(value, datetime):
            raise TypeError(f"datetime value expected for {key}, got {type(value).__name__}")
        return self._write(key, TIMESTAMP, to_utc(value))

    # Bytes

    def read_bytes(self, key: str) -> StoreResult[bytes]:
        return self._read(key, BYTES)

    def get_bytes(self, key: str) -> Optional[bytes]:
        return self.read_bytes(key).unwrap_or(None)

    def set_bytes(self, key: str, value: Union[bytes, bytearray, memoryview]) -> StoreResult[bool]:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"Byte sequence expected for {key}, got {type(value).__name__}")
        return self._write(key, BYTES, bytes(value))

    def _read(self, key: str, value_type: str) -> StoreResult:
        try:
            stored = self._load(key)
        except StorageUnavailable as e:
            logger.warning("Read of %s fell back to default: %s", key, e)
            monitoring.storage_unavailable.labels(operation="read").inc()
            return StoreResult(error=e)

        if stored is None:
            return StoreResult()

        stored_type, value = stored
        if stored_type != value_type:
            logger.debug("Key %s holds a %s value, not %s", key, stored_type, value_type)
            return StoreResult()
        return StoreResult(value=value)

    def _write(self, key: str, value_type: str, value: Any) -> StoreResult[bool]:
        try:
            self._save(key, value_type, value)
        except StorageUnavailable as e:
            logger.warning("Write of %s dropped: %s", key, e)
            monitoring.storage_unavailable.labels(operation="write").inc()
            return StoreResult(value=False, error=e)
        logger.debug("Stored %s value under %s", value_type, key)
        return StoreResult(value=True)


class InMemorySharedStore(SharedStore):
    """Dictionary-backed store for tests and previews.

    ``available=False`` behaves like a group that cannot be opened.
    """

    def __init__(self, group_id: str = "group.memory", available: bool = True):
        super().__init__(group_id)
        self.available = available
        self._values: Dict[str, Tuple[str, Any]] = {}

    def _load(self, key: str) -> Optional[Tuple[str, Any]]:
        if not self.available:
            raise StorageUnavailable(self.group_id, "store marked unavailable")
        return self._values.get(key)

    def _save(self, key: str, value_type: str, value: Any) -> None:
        if not self.available:
            raise StorageUnavailable(self.group_id, "store marked unavailable")
        self._values[key] = (value_type, value)


class SqlSharedStore(SharedStore):
    """Store backed by a SQLite file inside the group's container directory.

    Every process that opens the same group id under the same containers
    directory sees the same values. Each write is committed before the
    call returns.
    """

    def __init__(self, group_id: str, containers_dir: Union[str, Path], echo: bool = False):
        super().__init__(group_id)
        self.containers_dir = Path(containers_dir)
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def db_path(self) -> Path:
        return self.containers_dir / self.group_id / "shared_values.sqlite"

    def _open(self) -> sessionmaker:
        if self._session_factory is not None:
            return self._session_factory

        if not self.group_id or not GROUP_ID_PATTERN.match(self.group_id):
            raise StorageUnavailable(self.group_id, "invalid group identifier")

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            engine = create_group_engine(self.db_path, echo=self.echo)
            init_db(engine)
        except (OSError, SQLAlchemyError) as e:
            raise StorageUnavailable(self.group_id, str(e)) from e

        self._engine = engine
        self._session_factory = create_session_factory(engine)
        logger.info("Opened shared storage group %s at %s", self.group_id, self.db_path)
        return self._session_factory

    def _load(self, key: str) -> Optional[Tuple[str, Any]]:
        db = self._open()()
        try:
            row = db.get(SharedValue, key)
            if row is None:
                return None
            if row.value_type == INTEGER:
                return INTEGER, row.int_value
            if row.value_type == TIMESTAMP:
                return TIMESTAMP, to_utc(row.timestamp_value)
            return row.value_type, row.bytes_value
        except SQLAlchemyError as e:
            raise StorageUnavailable(self.group_id, str(e)) from e
        finally:
            db.close()

    def _save(self, key: str, value_type: str, value: Any) -> None:
        db = self._open()()
        try:
            db.merge(
                SharedValue(
                    key=key,
                    value_type=value_type,
                    int_value=value if value_type == INTEGER else None,
                    timestamp_value=value if value_type == TIMESTAMP else None,
                    bytes_value=value if value_type == BYTES else None,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageUnavailable(self.group_id, str(e)) from e
        finally:
            db.close()

    def close(self) -> None:
        """Release pooled connections; the store reopens on next use."""
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None


def open_shared_store(
    group_id: Optional[str] = None,
    containers_dir: Optional[Union[str, Path]] = None,
) -> SqlSharedStore:
    """Build the SQLite store for the configured group."""
    return SqlSharedStore(
        group_id if group_id is not None else settings.store.group_id,
        containers_dir if containers_dir is not None else settings.store.containers_dir,
        echo=settings.store.echo,
    )
