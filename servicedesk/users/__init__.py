"""Credential store. Management lives in :mod:`servicedesk.users.service`."""

from .models import Role, User, normalize_login
from .repository import UserRepository, default_admin_seed

__all__ = ["Role", "User", "UserRepository", "default_admin_seed", "normalize_login"]
