from __future__ import annotations

from collections.abc import Callable
from typing import Any

from servicedesk.core.clock import from_iso, to_iso, utc_now
from servicedesk.storage import JsonRepository

from .models import Role, User, normalize_login


def default_admin_seed(*, name: str, login: str, password: str) -> Callable[[], list[dict[str, Any]]]:
    """Return a store seed creating the bootstrap administrator."""

    def seed() -> list[dict[str, Any]]:
        admin = User(
            id="1",
            name=name,
            login=login,
            password=password,
            role=Role.ADMIN,
            active=True,
            created_at=utc_now(),
        )
        return [UserRepository._to_record(admin)]

    return seed


class UserRepository(JsonRepository[User]):
    @staticmethod
    def _to_record(entity: User) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": entity.id,
            "name": entity.name,
            "login": entity.login,
            "password": entity.password,
            "role": entity.role.value,
            "active": entity.active,
            "createdAt": to_iso(entity.created_at),
        }
        if entity.updated_at is not None:
            record["updatedAt"] = to_iso(entity.updated_at)
        return record

    @staticmethod
    def _from_record(record: dict[str, Any]) -> User:
        # Older records may lack "active" or "role"; they default to an active analyst.
        active = record.get("active")
        try:
            role = Role(record.get("role") or Role.ANALYST.value)
        except ValueError:
            role = Role.ANALYST
        return User(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            login=str(record.get("login", "")),
            password=str(record.get("password", "")),
            role=role,
            active=active if isinstance(active, bool) else True,
            created_at=from_iso(record.get("createdAt")) or utc_now(),
            updated_at=from_iso(record.get("updatedAt")),
        )

    async def find_by_login(self, login: str) -> User | None:
        key = normalize_login(login)
        if not key:
            return None
        for user in await self.list_all():
            if user.login_key == key:
                return user
        return None
