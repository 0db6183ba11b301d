"""Brute-force protection — failed sign-in tracking with time-boxed lockout.

Each identifier (an e-mail address, a client address, or ``"unknown"``)
moves through::

    no record -> counting (1..max-1) -> locked (count >= max) -> no record

A record is dropped when the caller clears it after a successful sign-in,
when the reset window elapses while still counting, or when an expired
lock is next checked. Records live in memory only; a restart forgets them.

This throttling is advisory and sits in front of the password check, it
does not replace it.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from fastapi import Request

from fluxstack.common.constants import (
    LOCKOUT_DURATION_MINUTES,
    MAX_LOGIN_ATTEMPTS,
    RESET_DURATION_MINUTES,
    UNKNOWN_IDENTIFIER,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttemptRecord:
    count: int
    first_attempt: float
    locked_until: Optional[float] = None


@dataclass(frozen=True)
class LockStatus:
    locked: bool
    remaining_seconds: int = 0


# ── Storage ─────────────────────────────────────────────────────────

class AttemptStore(Protocol):
    def get(self, identifier: str) -> Optional[AttemptRecord]: ...

    def put(self, identifier: str, record: AttemptRecord) -> None: ...

    def delete(self, identifier: str) -> None: ...


class InMemoryAttemptStore:
    """Dict-backed store; one per tracker."""

    def __init__(self) -> None:
        self._records: dict[str, AttemptRecord] = {}

    def get(self, identifier: str) -> Optional[AttemptRecord]:
        return self._records.get(identifier)

    def put(self, identifier: str, record: AttemptRecord) -> None:
        self._records[identifier] = record

    def delete(self, identifier: str) -> None:
        self._records.pop(identifier, None)

    def __len__(self) -> int:
        return len(self._records)


# ── Tracker ─────────────────────────────────────────────────────────

class AttemptTracker:
    """Counts failed attempts per identifier and locks after ``max_attempts``.

    All operations hold one lock, so a check and an increment for the same
    identifier can never interleave even when handlers run on threads.
    """

    def __init__(
        self,
        store: Optional[AttemptStore] = None,
        *,
        max_attempts: int = MAX_LOGIN_ATTEMPTS,
        lockout_seconds: float = LOCKOUT_DURATION_MINUTES * 60,
        reset_seconds: float = RESET_DURATION_MINUTES * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store: AttemptStore = store if store is not None else InMemoryAttemptStore()
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self.reset_seconds = reset_seconds
        self._clock = clock
        self._lock = threading.Lock()

    def check_locked(self, identifier: str) -> LockStatus:
        """Return the lock status, purging records that have gone stale."""
        with self._lock:
            record = self.store.get(identifier)
            if record is None:
                return LockStatus(locked=False)

            now = self._clock()
            if record.locked_until is not None:
                if now < record.locked_until:
                    remaining = math.ceil(record.locked_until - now)
                    return LockStatus(locked=True, remaining_seconds=remaining)
                self.store.delete(identifier)
                logger.info("Lockout expired for %s", identifier)
                return LockStatus(locked=False)

            if now - record.first_attempt > self.reset_seconds:
                self.store.delete(identifier)
            return LockStatus(locked=False)

    def record_failure(self, identifier: str) -> AttemptRecord:
        """Count one failed attempt and return the updated record."""
        with self._lock:
            now = self._clock()
            record = self.store.get(identifier)
            if record is None or self._is_stale(record, now):
                record = AttemptRecord(count=0, first_attempt=now)

            count = record.count + 1
            locked_until = record.locked_until
            if count >= self.max_attempts:
                locked_until = now + self.lockout_seconds
                logger.warning(
                    "Account locked after %d failed attempts: %s", count, identifier,
                )

            updated = AttemptRecord(
                count=count,
                first_attempt=record.first_attempt,
                locked_until=locked_until,
            )
            self.store.put(identifier, updated)
            return updated

    def clear(self, identifier: str) -> None:
        with self._lock:
            self.store.delete(identifier)
        logger.info("Login attempts cleared for %s", identifier)

    def attempt_count(self, identifier: str) -> int:
        with self._lock:
            record = self.store.get(identifier)
            return record.count if record else 0

    def _is_stale(self, record: AttemptRecord, now: float) -> bool:
        if record.locked_until is not None:
            return now >= record.locked_until
        return now - record.first_attempt > self.reset_seconds


# ── FastAPI glue ────────────────────────────────────────────────────

def resolve_identifier(email: Optional[str], request: Request) -> str:
    """Submitted e-mail, else forwarded client address, else ``"unknown"``."""
    return email or request.headers.get("x-forwarded-for") or UNKNOWN_IDENTIFIER


def get_attempt_tracker(request: Request) -> AttemptTracker:
    """FastAPI dependency: the tracker owned by the running app."""
    return request.app.state.attempt_tracker
