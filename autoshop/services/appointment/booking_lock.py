# autoshop/services/appointment/booking_lock.py
"""
Per-date locks held across the availability check and the write.

RedisBookingLock coordinates every API and worker process sharing the Redis
instance. LocalBookingLock only covers threads of one process.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import ContextManager, Dict, Iterator, Optional
import logging
import threading

import redis
from redis.exceptions import LockError

from autoshop.config.redis import RedisKeys, get_redis
from autoshop.core.exceptions import BookingLockTimeout

logger = logging.getLogger(__name__)


class BookingLock(ABC):
    """Interface: ``with lock.hold(day): ...``"""

    @abstractmethod
    def hold(self, day: date) -> ContextManager[None]:
        """Block until no other booking holds ``day``."""


class LocalBookingLock(BookingLock):
    def __init__(self, wait_seconds: float = 5.0):
        self.wait_seconds = wait_seconds
        self._guard = threading.Lock()
        self._locks: Dict[date, threading.Lock] = {}
        # Holders plus waiters per date; the entry goes when this reaches zero
        self._users: Dict[date, int] = {}

    def _checkout(self, day: date) -> threading.Lock:
        with self._guard:
            lock = self._locks.setdefault(day, threading.Lock())
            self._users[day] = self._users.get(day, 0) + 1
            return lock

    def _checkin(self, day: date) -> None:
        with self._guard:
            self._users[day] -= 1
            if self._users[day] == 0:
                del self._users[day]
                del self._locks[day]

    @contextmanager
    def hold(self, day: date) -> Iterator[None]:
        lock = self._checkout(day)
        try:
            if not lock.acquire(timeout=self.wait_seconds):
                logger.warning(f"Timed out waiting for booking lock on {day}")
                raise BookingLockTimeout()
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(day)

class RedisBookingLock(BookingLock):
    def __init__(
            self,
            client: redis.Redis,
            timeout_seconds: int = 10,
            wait_seconds: float = 5.0
    ):
        self.client = client
        self.timeout_seconds = timeout_seconds
        self.wait_seconds = wait_seconds

    @contextmanager
    def hold(self, day: date) -> Iterator[None]:
        key = RedisKeys.BOOKING_LOCK.format(date=day.isoformat())
        lock = self.client.lock(
            key,
            timeout=self.timeout_seconds,
            blocking_timeout=self.wait_seconds
        )

        if not lock.acquire():
            logger.warning(f"Timed out waiting for booking lock {key}")
            raise BookingLockTimeout()
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # Lock expired before release; the write itself already finished
                logger.error(f"Booking lock {key} expired before release: {e}")


_local_lock: Optional[LocalBookingLock] = None


def get_booking_lock(settings) -> BookingLock:
    """Lock backend selected by BOOKING_LOCK_BACKEND"""
    global _local_lock
    if settings.BOOKING_LOCK_BACKEND == "redis":
        return RedisBookingLock(
            get_redis(),
            timeout_seconds=settings.BOOKING_LOCK_TIMEOUT_SECONDS,
            wait_seconds=settings.BOOKING_LOCK_WAIT_SECONDS
        )

    # Shared by every request in this process
    if _local_lock is None:
        _local_lock = LocalBookingLock(wait_seconds=settings.BOOKING_LOCK_WAIT_SECONDS)
    return _local_lock
