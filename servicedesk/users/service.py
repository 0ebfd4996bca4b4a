from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from servicedesk.auth.service import AuthService, RequestContext
from servicedesk.auth.tokens import Identity
from servicedesk.core.clock import Clock, MonotonicIds, utc_now
from servicedesk.core.errors import Conflict, Forbidden, NotFound, ValidationError

from .models import Role, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _parse_role(value: str | Role | None) -> Role:
    try:
        return Role(value)
    except ValueError as exc:
        raise ValidationError("Invalid role. Use: admin or analyst") from exc


class UserService:
    """Administrative management of the credential store."""

    def __init__(
        self,
        repository: UserRepository,
        auth: AuthService,
        *,
        ids: MonotonicIds | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._auth = auth
        self._clock = clock
        self._ids = ids or MonotonicIds(clock)

    async def list_users(self) -> Sequence[User]:
        return await self._repository.list_all()

    async def get_user(self, user_id: str) -> User:
        user = await self._repository.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def create_user(self, *, name: str, login: str, password: str, role: str | Role) -> User:
        name = (name or "").strip()
        login = (login or "").strip()
        if not name or not login or not password or not role:
            raise ValidationError("All fields are required")

        user = User(
            id=self._ids.next_id(),
            name=name,
            login=login,
            password=str(password),
            role=_parse_role(role),
            active=True,
            created_at=self._clock(),
        )

        def ensure_unique(candidate: User, existing: list[User]) -> None:
            if any(other.login_key == candidate.login_key for other in existing):
                raise Conflict("User already exists")

        await self._repository.add_unique(user, ensure_unique)
        logger.info("User %s created with role %s", user.login, user.role.value)
        return user

    async def change_password(self, user_id: str, password: str) -> User:
        if not password:
            raise ValidationError("Inform the new password")
        now = self._clock()
        return await self._update(user_id, lambda user: replace(user, password=str(password), updated_at=now))

    async def change_role(self, user_id: str, role: str | Role, *, actor: Identity) -> User:
        if not role:
            raise ValidationError("Inform the new role")
        new_role = _parse_role(role)
        if str(user_id) == actor.id:
            raise Forbidden("Changing your own role is not allowed")
        now = self._clock()
        return await self._update(user_id, lambda user: replace(user, role=new_role, updated_at=now))

    async def set_active(self, user_id: str, active: bool, *, actor: Identity) -> User:
        if str(user_id) == actor.id and not active:
            raise Forbidden("Deactivating your own user is not allowed")
        now = self._clock()
        return await self._update(user_id, lambda user: replace(user, active=active, updated_at=now))

    async def delete_user(self, user_id: str, *, actor: Identity) -> User:
        if str(user_id) == actor.id:
            raise Forbidden("Deleting your own user is not allowed")
        removed = await self._repository.delete(user_id)
        if removed is None:
            raise NotFound("User not found")
        await self._auth.forget(removed.login)
        logger.info("User %s deleted by %s", removed.login, actor.name)
        return removed

    async def unlock_user(self, user_id: str, *, actor: Identity, context: RequestContext | None = None) -> User:
        user = await self.get_user(user_id)
        await self._auth.unlock(user.login, actor=actor, context=context)
        return user

    async def _update(self, user_id: str, change) -> User:
        updated = await self._repository.update(user_id, lambda user, _others: change(user))
        if updated is None:
            raise NotFound("User not found")
        return updated
