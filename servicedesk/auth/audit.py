from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Sequence

from servicedesk.core.clock import MonotonicIds, from_iso, to_iso, utc_now
from servicedesk.storage import RecordStore

MAX_AUDIT_QUERY_LIMIT = 2000


class LoginOutcome(str, Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    MISSING_FIELDS = "missing_fields"
    INACTIVE_USER = "inactive_user"
    LOCKED_BY_ATTEMPTS = "locked_by_attempts"
    MANUAL_UNLOCK = "manual_unlock"


@dataclass(frozen=True, slots=True)
class LoginAuditEvent:
    """Immutable record of one login attempt or lockout administration action."""

    id: str
    timestamp: datetime
    login_attempted: str
    outcome: LoginOutcome
    detail: str
    source_ip: str | None = None
    user_agent: str | None = None
    user_id: str | None = None
    role: str | None = None
    active: bool | None = None


class LoginAuditLog:
    """Append-only audit trail bounded to the most recent ``max_entries`` events."""

    def __init__(self, store: RecordStore, *, max_entries: int = 2000, ids: MonotonicIds | None = None) -> None:
        self._store = store
        self._max_entries = max_entries
        self._ids = ids or MonotonicIds()

    @staticmethod
    def _to_record(event: LoginAuditEvent) -> dict[str, Any]:
        return {
            "id": event.id,
            "timestamp": to_iso(event.timestamp),
            "loginAttempted": event.login_attempted,
            "outcome": event.outcome.value,
            "detail": event.detail,
            "sourceIp": event.source_ip,
            "userAgent": event.user_agent,
            "userId": event.user_id,
            "role": event.role,
            "active": event.active,
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> LoginAuditEvent:
        return LoginAuditEvent(
            id=str(record.get("id")),
            timestamp=from_iso(record.get("timestamp")) or utc_now(),
            login_attempted=str(record.get("loginAttempted") or ""),
            outcome=LoginOutcome(record.get("outcome")),
            detail=str(record.get("detail") or ""),
            source_ip=record.get("sourceIp"),
            user_agent=record.get("userAgent"),
            user_id=record.get("userId"),
            role=record.get("role"),
            active=record.get("active"),
        )

    async def record(
        self,
        *,
        timestamp: datetime,
        login_attempted: str,
        outcome: LoginOutcome,
        detail: str = "",
        source_ip: str | None = None,
        user_agent: str | None = None,
        user_id: str | None = None,
        role: str | None = None,
        active: bool | None = None,
    ) -> LoginAuditEvent:
        event = LoginAuditEvent(
            id=self._ids.next_id(),
            timestamp=timestamp,
            login_attempted=login_attempted,
            outcome=outcome,
            detail=detail,
            source_ip=source_ip,
            user_agent=user_agent,
            user_id=user_id,
            role=role,
            active=active,
        )
        async with self._store.transaction() as records:
            records.append(self._to_record(event))
            overflow = len(records) - self._max_entries
            if overflow > 0:
                del records[:overflow]
        return event

    async def recent(self, limit: int = 200) -> Sequence[LoginAuditEvent]:
        """Most recent events first; ``limit`` is clamped to ``1..2000``."""

        limit = max(1, min(int(limit), MAX_AUDIT_QUERY_LIMIT))
        records = self._store.read()[-limit:]
        return [self._from_record(record) for record in reversed(records)]
