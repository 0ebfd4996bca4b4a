from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from threading import Lock

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def from_iso(value: str | None) -> datetime | None:
    """Parse a stored timestamp, treating naive values as UTC."""

    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class MonotonicIds:
    """Time-based identifiers that strictly increase in creation order."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._last = 0
        self._lock = Lock()

    def next_id(self) -> str:
        with self._lock:
            candidate = int(self._clock().timestamp() * 1000)
            self._last = max(candidate, self._last + 1)
            return str(self._last)
