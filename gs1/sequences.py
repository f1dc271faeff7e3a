"""
SSCC Sequence Sources

An SSCC must never be issued twice within a company's namespace. The SSCC
builder stays pure; uniqueness comes from the sequence source it is given.

Sources:
- CounterSequence: in-process counter (tests, single worker, checkpointed start)
- RedisSequence: INCR on a per-company key, atomic across processes
- DatabaseSequence: in-database increment of a row in the sscc_sequences table
- TimestampSequence: legacy wall-clock + random digits (collision-prone)
"""

import logging
import os
import secrets
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import redis
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class SequenceSource(ABC):
    """Produces non-negative integers; every call returns a value not returned before."""

    @abstractmethod
    def next_value(self) -> int:
        """Return the next value of the sequence."""
        pass


class CounterSequence(SequenceSource):
    """Thread-safe in-memory counter."""

    def __init__(self, start: int = 1):
        if start < 0:
            raise ValueError(f"Sequence start must be non-negative, got {start}")
        self._next = start
        self._lock = threading.Lock()

    def next_value(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
        return value

    @property
    def checkpoint(self) -> int:
        """Next value to be issued; persist this to resume after a restart."""
        with self._lock:
            return self._next


class RedisSequence(SequenceSource):
    """Per-company counter backed by Redis INCR."""

    def __init__(self, company_id: str, redis_client=None, redis_url: str = None):
        if redis_client is None:
            redis_url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
            redis_client = redis.from_url(redis_url, decode_responses=True)
        self.redis_client = redis_client
        self.key = f"sscc:seq:{company_id}"

    def next_value(self) -> int:
        return int(self.redis_client.incr(self.key))


class DatabaseSequence(SequenceSource):
    """
    Per-company counter stored in the sscc_sequences table.

    The increment runs inside the database (UPDATE ... SET last_value =
    last_value + 1), so concurrent callers serialize on the row's write lock
    and each reads back its own value in the same transaction. The first
    call for a company inserts the row; if another caller inserted it first,
    the unique constraint fails and the update is retried.

    Args:
        company_id: Company whose namespace the SSCCs belong to
        session_factory: Callable returning a SQLAlchemy Session
            (defaults to database.connection.SessionLocal)
        max_attempts: Attempts before giving up on a contended first insert
    """

    def __init__(self, company_id: str, session_factory: Optional[Callable] = None, max_attempts: int = 3):
        self.company_id = company_id
        if session_factory is None:
            from database.connection import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory
        self.max_attempts = max_attempts

    def _increment(self, db) -> Optional[int]:
        from database.models import SSCCSequence

        result = db.execute(
            update(SSCCSequence)
            .where(SSCCSequence.company_id == self.company_id)
            .values(last_value=SSCCSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return db.execute(
            select(SSCCSequence.last_value).where(SSCCSequence.company_id == self.company_id)
        ).scalar_one()

    def next_value(self) -> int:
        from database.models import SSCCSequence

        for attempt in range(1, self.max_attempts + 1):
            db = self.session_factory()
            try:
                value = self._increment(db)
                if value is None:
                    db.add(SSCCSequence(company_id=self.company_id, last_value=1))
                    db.flush()
                    value = 1
                db.commit()
                return value
            except IntegrityError:
                db.rollback()
                logger.info(f"SSCC sequence row for {self.company_id} created concurrently, retry {attempt}")
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

        raise RuntimeError(f"Could not allocate SSCC sequence value for {self.company_id}")


class TimestampSequence(SequenceSource):
    """
    Legacy source: last 12 digits of the epoch milliseconds + 4 random digits.

    Two processes issuing within the same millisecond can collide; use a
    counter-backed source for production issuance.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def next_value(self) -> int:
        timestamp_ms = str(int(self.clock() * 1000))[-12:].zfill(12)
        suffix = str(secrets.randbelow(10000)).zfill(4)
        return int(timestamp_ms + suffix)


def sequence_for_company(company_id: str, backend: str = None) -> SequenceSource:
    """
    Build the configured sequence source for a company.

    Backend comes from SSCC_SEQUENCE_BACKEND ("database", "redis", "timestamp").
    """
    backend = (backend or os.getenv("SSCC_SEQUENCE_BACKEND", "database")).lower()

    if backend == "database":
        return DatabaseSequence(company_id)
    if backend == "redis":
        return RedisSequence(company_id)
    if backend == "timestamp":
        logger.warning(f"Using timestamp SSCC sequence for {company_id}; collisions are possible")
        return TimestampSequence()

    raise ValueError(f"Unknown SSCC sequence backend: {backend}")
