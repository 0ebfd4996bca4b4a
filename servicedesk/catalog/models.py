from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Client:
    id: str
    name: str
    cnpj: str
    cnpj_digits: str
    active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def unique_key(self) -> str:
        return self.cnpj_digits


@dataclass(slots=True)
class Category:
    """Ticket category, unique per group by its slugged ``group::name`` key."""

    id: str
    group: str
    name: str
    key: str
    active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def unique_key(self) -> str:
        return self.key


@dataclass(slots=True)
class Group:
    id: str
    name: str
    key: str
    active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def unique_key(self) -> str:
        return self.key
