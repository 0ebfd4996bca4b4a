from __future__ import annotations

from datetime import datetime
from typing import Any

from servicedesk.core.clock import from_iso, to_iso
from servicedesk.storage import RecordStore
from servicedesk.users.models import normalize_login

from .throttle import CLEAR, ThrottleEntry, is_locked


class ThrottleLedger:
    """Persisted throttle entries keyed by lowercased login name."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    @staticmethod
    def _to_record(login: str, entry: ThrottleEntry) -> dict[str, Any]:
        return {
            "login": login,
            "failCount": entry.fail_count,
            "firstFailAt": to_iso(entry.first_fail_at),
            "lastFailAt": to_iso(entry.last_fail_at),
            "blockedUntil": to_iso(entry.blocked_until),
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> ThrottleEntry:
        return ThrottleEntry(
            fail_count=int(record.get("failCount") or 0),
            first_fail_at=from_iso(record.get("firstFailAt")),
            last_fail_at=from_iso(record.get("lastFailAt")),
            blocked_until=from_iso(record.get("blockedUntil")),
        )

    async def get(self, login: str) -> ThrottleEntry:
        key = normalize_login(login)
        for record in self._store.read():
            if record.get("login") == key:
                return self._from_record(record)
        return CLEAR

    async def put(self, login: str, entry: ThrottleEntry) -> None:
        key = normalize_login(login)
        async with self._store.transaction() as records:
            records[:] = [record for record in records if record.get("login") != key]
            records.append(self._to_record(key, entry))

    async def clear(self, login: str) -> None:
        await self.put(login, CLEAR)

    async def remove(self, login: str) -> bool:
        key = normalize_login(login)
        async with self._store.transaction() as records:
            before = len(records)
            records[:] = [record for record in records if record.get("login") != key]
            return len(records) != before

    async def locked(self, now: datetime) -> list[tuple[str, ThrottleEntry]]:
        """Return the login names whose lockout is still running at ``now``."""

        result: list[tuple[str, ThrottleEntry]] = []
        for record in self._store.read():
            entry = self._from_record(record)
            if is_locked(entry, now):
                result.append((str(record.get("login")), entry))
        result.sort(key=lambda item: item[1].blocked_until)
        return result
