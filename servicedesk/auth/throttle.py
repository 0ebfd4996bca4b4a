"""Sliding-window login failure counter.

Pure functions of ``(entry, now, policy)``; persistence lives in
:mod:`servicedesk.auth.ledger`. Per login name the entry moves through
``clear -> accumulating -> locked -> clear``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True)
class ThrottlePolicy:
    max_attempts: int = 5
    window: timedelta = timedelta(minutes=15)
    lockout: timedelta = timedelta(minutes=15)


@dataclass(frozen=True, slots=True)
class ThrottleEntry:
    fail_count: int = 0
    first_fail_at: datetime | None = None
    last_fail_at: datetime | None = None
    blocked_until: datetime | None = None

    @property
    def is_clear(self) -> bool:
        return self.fail_count == 0 and self.blocked_until is None


CLEAR = ThrottleEntry()


def is_locked(entry: ThrottleEntry, now: datetime) -> bool:
    return entry.blocked_until is not None and now < entry.blocked_until


def evaluate(entry: ThrottleEntry, now: datetime) -> tuple[ThrottleEntry, bool]:
    """Return ``(entry, locked)``, clearing a lockout whose time has passed."""

    if entry.blocked_until is None:
        return entry, False
    if now < entry.blocked_until:
        return entry, True
    return CLEAR, False


def register_failure(entry: ThrottleEntry, now: datetime, policy: ThrottlePolicy) -> ThrottleEntry:
    """Count one failed attempt, restarting the window when it has expired."""

    window_expired = entry.first_fail_at is None or now - entry.first_fail_at > policy.window
    if window_expired:
        updated = ThrottleEntry(fail_count=1, first_fail_at=now, last_fail_at=now, blocked_until=None)
    else:
        updated = replace(entry, fail_count=entry.fail_count + 1, last_fail_at=now)

    if updated.fail_count >= policy.max_attempts:
        updated = replace(updated, blocked_until=now + policy.lockout)
    return updated


def remaining_minutes(entry: ThrottleEntry, now: datetime) -> int:
    """Whole minutes (rounded up, at least one) until the lockout ends."""

    if entry.blocked_until is None:
        return 0
    seconds = (entry.blocked_until - now).total_seconds()
    return max(1, math.ceil(seconds / 60))
