from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Supported roles."""

    ADMIN = "admin"
    ANALYST = "analyst"


@dataclass(slots=True)
class User:
    """Entry of the credential store.

    Passwords are kept and compared as plain text.
    """

    id: str
    name: str
    login: str
    password: str
    role: Role
    active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def login_key(self) -> str:
        return normalize_login(self.login)

    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def normalize_login(login: str | None) -> str:
    return str(login or "").strip().lower()
