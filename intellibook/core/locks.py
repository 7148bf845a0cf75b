# intellibook/core/locks.py
"""
Per-(business, date) booking locks.

The appointment writer holds one of these around its overlap re-check and
insert/update so that two writers can never both pass the check for the
same business and day. The lock lives exactly as long as the write
transaction and is keyed as narrowly as possible.
"""
import logging
import threading
import zlib
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import ContextManager, Dict, Iterator, List, Tuple, Union
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.orm import Session

from intellibook.core.exceptions import FormatError

logger = logging.getLogger(__name__)


def date_lock_key(appointment_date: Union[date, str]) -> int:
    """2026-10-18 -> 20261018"""
    value = appointment_date.isoformat() if isinstance(appointment_date, date) else str(appointment_date or "")
    try:
        return int(value.replace("-", ""))
    except ValueError:
        raise FormatError("date must be in YYYY-MM-DD format")


def business_lock_key(business_id: Union[UUID, str]) -> int:
    """Stable signed 32-bit key for a business id (fits pg int4)"""
    return zlib.crc32(str(business_id).encode("utf-8")) - 2 ** 31


def lock_keys(business_id: Union[UUID, str], appointment_date: Union[date, str]) -> Tuple[int, int]:
    return business_lock_key(business_id), date_lock_key(appointment_date)


class BookingLock(ABC):
    """Mutual exclusion region for one business and one calendar date"""

    name = "none"

    @abstractmethod
    def hold(self, db: Session, business_id, appointment_date) -> ContextManager[None]:
        """
        Hold the (business, date) lock for the body of the with-block.

        Callers commit or roll back the session inside the block so the
        lock is never released before the write is durable.
        """


class PostgresAdvisoryLock(BookingLock):
    """Transaction-scoped advisory lock, released by COMMIT/ROLLBACK"""

    name = "pg_advisory_xact_lock"

    @contextmanager
    def hold(self, db: Session, business_id, appointment_date) -> Iterator[None]:
        business_key, date_key = lock_keys(business_id, appointment_date)
        db.execute(
            text("SELECT pg_advisory_xact_lock(:business_key, :date_key)"),
            {"business_key": business_key, "date_key": date_key},
        )
        yield


class KeyedMutexLock(BookingLock):
    """
    In-process lock map for the embedded single-writer backend.

    Entries are reference counted and dropped once no writer waits on
    them, so the map only ever holds keys that are in use.
    """

    name = "keyed_mutex"

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Tuple[int, int], List] = {}

    def _acquire_entry(self, key: Tuple[int, int]) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _release_entry(self, key: Tuple[int, int]) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._locks[key]

    @property
    def active_keys(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, db: Session, business_id, appointment_date) -> Iterator[None]:
        key = lock_keys(business_id, appointment_date)
        lock = self._acquire_entry(key)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            self._release_entry(key)


def lock_for_dialect(dialect_name: str) -> BookingLock:
    """Pick the lock primitive the backend supports"""
    if dialect_name == "postgresql":
        return PostgresAdvisoryLock()
    if dialect_name != "sqlite":
        logger.warning(f"No advisory lock support for dialect '{dialect_name}', using in-process locks")
    return KeyedMutexLock()
