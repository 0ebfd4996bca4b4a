from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from .store import RecordStore

EntityT = TypeVar("EntityT")


class JsonRepository(ABC, Generic[EntityT]):
    """Map the records of a :class:`RecordStore` to domain entities keyed by ``id``."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    @staticmethod
    @abstractmethod
    def _to_record(entity: EntityT) -> dict[str, Any]:
        ...

    @staticmethod
    @abstractmethod
    def _from_record(record: dict[str, Any]) -> EntityT:
        ...

    async def list_all(self) -> Sequence[EntityT]:
        return [self._from_record(record) for record in self._store.read()]

    async def get(self, entity_id: str) -> EntityT | None:
        for record in self._store.read():
            if str(record.get("id")) == str(entity_id):
                return self._from_record(record)
        return None

    async def add(self, entity: EntityT) -> EntityT:
        async with self._store.transaction() as records:
            records.append(self._to_record(entity))
        return entity

    async def update(self, entity_id: str, change: Callable[[EntityT, list[EntityT]], EntityT]) -> EntityT | None:
        """Apply ``change`` to one entity inside a single read-modify-write cycle.

        ``change`` receives the entity and every other entity of the store (for
        uniqueness checks). Exceptions it raises abort the write.
        """

        async with self._store.transaction() as records:
            for index, record in enumerate(records):
                if str(record.get("id")) != str(entity_id):
                    continue
                others = [self._from_record(other) for i, other in enumerate(records) if i != index]
                updated = change(self._from_record(record), others)
                records[index] = self._to_record(updated)
                return updated
        return None

    async def add_unique(self, entity: EntityT, check: Callable[[EntityT, list[EntityT]], None]) -> EntityT:
        """Append ``entity`` after ``check`` accepted it against the current records."""

        async with self._store.transaction() as records:
            check(entity, [self._from_record(record) for record in records])
            records.append(self._to_record(entity))
        return entity

    async def delete(self, entity_id: str) -> EntityT | None:
        async with self._store.transaction() as records:
            for index, record in enumerate(records):
                if str(record.get("id")) == str(entity_id):
                    removed = records.pop(index)
                    return self._from_record(removed)
        return None
