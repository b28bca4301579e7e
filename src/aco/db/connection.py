"""SQLite connections for the asset store.

The daemon's event workers and a concurrently running backfill may write to
the same database file. WAL mode plus a busy timeout absorbs most
contention; execute_with_retry handles what is left.
"""

from __future__ import annotations

import logging
import random
import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA busy_timeout = 10000",
)


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for lock contention."""

    max_retries: int = 5
    base_delay: float = 0.1
    max_delay: float = 5.0
    jitter: float = 0.1

    def delay_for(self, attempt: int) -> float:
        """Sleep before retry number ``attempt`` (0-based), jitter applied."""
        delay = min(self.base_delay * (2**attempt), self.max_delay)
        return delay * (1 + random.uniform(-self.jitter, self.jitter))  # nosec B311


DEFAULT_RETRY = RetryPolicy()


@contextmanager
def get_connection(
    db_path: Path, timeout: float = 30.0
) -> Iterator[sqlite3.Connection]:
    """Open a configured connection to ``db_path`` and close it afterwards.

    One connection per call: the store is used from asyncio.to_thread
    workers and sqlite3 connections must not cross threads.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    try:
        for pragma in _PRAGMAS:
            conn.execute(pragma)
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Commit on success, roll back on any exception."""
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()


def is_lock_error(error: sqlite3.OperationalError) -> bool:
    message = str(error).casefold()
    return "locked" in message or "busy" in message


def execute_with_retry(
    func: Callable[[], T],
    max_retries: int | None = None,
    policy: RetryPolicy = DEFAULT_RETRY,
) -> T:
    """Call ``func`` until it stops failing with a lock error.

    Args:
        func: Unit of work; it must be safe to repeat, i.e. roll back its
            own partial writes (see transaction()).
        max_retries: Override for ``policy.max_retries``.
        policy: Backoff settings.

    Raises:
        sqlite3.OperationalError: Non-lock errors immediately, lock errors
            once the retries are used up.
    """
    retries = policy.max_retries if max_retries is None else max_retries
    attempt = 0
    while True:
        try:
            result = func()
        except sqlite3.OperationalError as e:
            if not is_lock_error(e) or attempt >= retries:
                if attempt:
                    logger.warning(
                        "Giving up on database write after %d attempts: %s",
                        attempt + 1,
                        e,
                    )
                raise
            delay = policy.delay_for(attempt)
            logger.info(
                "Database busy (attempt %d/%d), retrying in %.2fs",
                attempt + 1,
                retries + 1,
                delay,
            )
            time.sleep(delay)
            attempt += 1
            continue
        if attempt:
            logger.info("Database write succeeded on attempt %d", attempt + 1)
        return result


def check_database_connectivity(db_path: Path) -> bool:
    """True if the database file exists and answers a trivial query.

    Never creates the file, so a health probe cannot mask a wrong path.
    """
    if not db_path.is_file():
        return False
    try:
        conn = sqlite3.connect(str(db_path), timeout=5.0)
    except sqlite3.Error:
        return False
    try:
        conn.execute("SELECT 1").fetchone()
    except sqlite3.Error:
        return False
    finally:
        conn.close()
    return True
