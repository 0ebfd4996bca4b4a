from __future__ import annotations

from typing import Any

from servicedesk.core.clock import from_iso, to_iso, utc_now
from servicedesk.storage import JsonRepository

from .keys import category_key, cnpj_digits, slugify
from .models import Category, Client, Group


def _active(record: dict[str, Any]) -> bool:
    value = record.get("active")
    return value if isinstance(value, bool) else True


def _timestamps(entity: Client | Category | Group) -> dict[str, Any]:
    stamps = {"createdAt": to_iso(entity.created_at)}
    if entity.updated_at is not None:
        stamps["updatedAt"] = to_iso(entity.updated_at)
    return stamps


class ClientRepository(JsonRepository[Client]):
    @staticmethod
    def _to_record(entity: Client) -> dict[str, Any]:
        return {
            "id": entity.id,
            "name": entity.name,
            "cnpj": entity.cnpj,
            "cnpjDigits": entity.cnpj_digits,
            "active": entity.active,
            **_timestamps(entity),
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> Client:
        cnpj = str(record.get("cnpj") or "")
        return Client(
            id=str(record["id"]),
            name=str(record.get("name") or ""),
            cnpj=cnpj,
            cnpj_digits=str(record.get("cnpjDigits") or cnpj_digits(cnpj)),
            active=_active(record),
            created_at=from_iso(record.get("createdAt")) or utc_now(),
            updated_at=from_iso(record.get("updatedAt")),
        )


class CategoryRepository(JsonRepository[Category]):
    @staticmethod
    def _to_record(entity: Category) -> dict[str, Any]:
        return {
            "id": entity.id,
            "group": entity.group,
            "name": entity.name,
            "key": entity.key,
            "active": entity.active,
            **_timestamps(entity),
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> Category:
        group = str(record.get("group") or "")
        name = str(record.get("name") or "")
        return Category(
            id=str(record["id"]),
            group=group,
            name=name,
            key=str(record.get("key") or category_key(group, name)),
            active=_active(record),
            created_at=from_iso(record.get("createdAt")) or utc_now(),
            updated_at=from_iso(record.get("updatedAt")),
        )


class GroupRepository(JsonRepository[Group]):
    @staticmethod
    def _to_record(entity: Group) -> dict[str, Any]:
        return {
            "id": entity.id,
            "name": entity.name,
            "key": entity.key,
            "active": entity.active,
            **_timestamps(entity),
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> Group:
        name = str(record.get("name") or "")
        return Group(
            id=str(record["id"]),
            name=name,
            key=str(record.get("key") or slugify(name)),
            active=_active(record),
            created_at=from_iso(record.get("createdAt")) or utc_now(),
            updated_at=from_iso(record.get("updatedAt")),
        )
