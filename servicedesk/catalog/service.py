from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import Any, Generic, Mapping, Sequence, TypeVar

from servicedesk.core.clock import Clock, MonotonicIds, utc_now
from servicedesk.core.errors import Conflict, NotFound, ValidationError
from servicedesk.storage import JsonRepository
from servicedesk.users.models import Role

from .keys import category_key, cnpj_digits, slugify, sort_text
from .models import Category, Client, Group

EntityT = TypeVar("EntityT", Client, Category, Group)

MIN_NAME_LENGTH = 2
CNPJ_LENGTH = 14


def _clean_name(value: Any, message: str) -> str:
    text = str(value or "").strip()
    if len(text) < MIN_NAME_LENGTH:
        raise ValidationError(message)
    return text


class ReferenceDataService(ABC, Generic[EntityT]):
    """Admin-managed lookup list with an ``active`` flag and a unique normalised key.

    Analysts only ever see active entries; administrators see everything unless
    they ask for active entries only.
    """

    not_found_message = "Record not found"
    duplicate_message = "Record already exists"

    def __init__(
        self,
        repository: JsonRepository[EntityT],
        *,
        ids: MonotonicIds | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._ids = ids or MonotonicIds(clock)

    @abstractmethod
    def _build(self, payload: Mapping[str, Any], *, entity_id: str, now: datetime) -> EntityT:
        """Validate a creation payload into a new active entity."""

    @abstractmethod
    def _apply(self, current: EntityT, payload: Mapping[str, Any]) -> EntityT:
        """Return ``current`` with the recognised fields of ``payload`` applied."""

    @abstractmethod
    def _sort_key(self, entity: EntityT) -> Any:
        ...

    def _sorted(self, items: list[EntityT]) -> list[EntityT]:
        return sorted(items, key=self._sort_key)

    def _ensure_unique(self, candidate: EntityT, existing: list[EntityT]) -> None:
        if any(other.id != candidate.id and other.unique_key == candidate.unique_key for other in existing):
            raise Conflict(self.duplicate_message)

    async def list_items(self, *, role: Role, active_only: bool = False) -> Sequence[EntityT]:
        items = list(await self._repository.list_all())
        if role != Role.ADMIN or active_only:
            items = [item for item in items if item.active]
        return self._sorted(items)

    async def create(self, payload: Mapping[str, Any]) -> EntityT:
        entity = self._build(payload, entity_id=self._ids.next_id(), now=self._clock())
        return await self._repository.add_unique(entity, self._ensure_unique)

    async def update(self, entity_id: str, payload: Mapping[str, Any]) -> EntityT:
        now = self._clock()

        def change(current: EntityT, others: list[EntityT]) -> EntityT:
            updated = self._apply(current, payload)
            active = payload.get("active")
            if isinstance(active, bool):
                updated = replace(updated, active=active)
            updated = replace(updated, updated_at=now)
            self._ensure_unique(updated, others)
            return updated

        updated = await self._repository.update(entity_id, change)
        if updated is None:
            raise NotFound(self.not_found_message)
        return updated

    async def delete(self, entity_id: str) -> EntityT:
        removed = await self._repository.delete(entity_id)
        if removed is None:
            raise NotFound(self.not_found_message)
        return removed


class ClientService(ReferenceDataService[Client]):
    """Clients are unique by the digits of their CNPJ, however it was typed."""

    not_found_message = "Client not found"
    duplicate_message = "A client with this CNPJ already exists"

    @staticmethod
    def _digits(cnpj: Any) -> str:
        digits = cnpj_digits(cnpj)
        if len(digits) != CNPJ_LENGTH:
            raise ValidationError("Invalid CNPJ (must have 14 digits)")
        return digits

    def _build(self, payload: Mapping[str, Any], *, entity_id: str, now: datetime) -> Client:
        if not payload.get("name") or not payload.get("cnpj"):
            raise ValidationError("Inform name and CNPJ")
        name = _clean_name(payload["name"], "Invalid client name")
        digits = self._digits(payload["cnpj"])
        return Client(
            id=entity_id,
            name=name,
            cnpj=str(payload["cnpj"]).strip(),
            cnpj_digits=digits,
            active=True,
            created_at=now,
        )

    def _apply(self, current: Client, payload: Mapping[str, Any]) -> Client:
        updated = current
        if isinstance(payload.get("name"), str):
            updated = replace(updated, name=_clean_name(payload["name"], "Invalid client name"))
        if isinstance(payload.get("cnpj"), str):
            updated = replace(updated, cnpj=payload["cnpj"].strip(), cnpj_digits=self._digits(payload["cnpj"]))
        return updated

    def _sort_key(self, entity: Client) -> Any:
        # newest first
        return -int(entity.id) if entity.id.isdigit() else 0


class CategoryService(ReferenceDataService[Category]):
    not_found_message = "Category not found"
    duplicate_message = "This category already exists in this group"

    def _build(self, payload: Mapping[str, Any], *, entity_id: str, now: datetime) -> Category:
        group = str(payload.get("group") or "").strip()
        name = str(payload.get("name") or "").strip()
        if len(group) < MIN_NAME_LENGTH or len(name) < MIN_NAME_LENGTH:
            raise ValidationError("Inform the group and name of the category")
        return Category(
            id=entity_id,
            group=group,
            name=name,
            key=category_key(group, name),
            active=True,
            created_at=now,
        )

    def _apply(self, current: Category, payload: Mapping[str, Any]) -> Category:
        updated = current
        if isinstance(payload.get("group"), str):
            updated = replace(updated, group=_clean_name(payload["group"], "Invalid group"))
        if isinstance(payload.get("name"), str):
            updated = replace(updated, name=_clean_name(payload["name"], "Invalid name"))
        return replace(updated, key=category_key(updated.group, updated.name))

    def _sort_key(self, entity: Category) -> Any:
        return (sort_text(entity.group), sort_text(entity.name))


class GroupService(ReferenceDataService[Group]):
    not_found_message = "Group not found"
    duplicate_message = "A group with this name already exists"

    def _build(self, payload: Mapping[str, Any], *, entity_id: str, now: datetime) -> Group:
        name = _clean_name(payload.get("name"), "Inform the group name")
        return Group(id=entity_id, name=name, key=slugify(name), active=True, created_at=now)

    def _apply(self, current: Group, payload: Mapping[str, Any]) -> Group:
        if isinstance(payload.get("name"), str):
            name = _clean_name(payload["name"], "Invalid group name")
            return replace(current, name=name, key=slugify(name))
        return current

    def _sort_key(self, entity: Group) -> Any:
        return sort_text(entity.name)
