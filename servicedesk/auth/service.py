from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import NoReturn

from servicedesk.core.clock import Clock, utc_now
from servicedesk.core.errors import Forbidden, RateLimited, Unauthenticated, ValidationError
from servicedesk.users.models import User, normalize_login
from servicedesk.users.repository import UserRepository

from . import throttle
from .audit import LoginAuditLog, LoginOutcome
from .ledger import ThrottleLedger
from .throttle import ThrottleEntry, ThrottlePolicy
from .tokens import Identity, TokenService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"
_ROUTINE_OUTCOMES = frozenset({LoginOutcome.SUCCESS, LoginOutcome.MANUAL_UNLOCK})


@dataclass(frozen=True, slots=True)
class LoginResult:
    token: str
    user: User


@dataclass(frozen=True, slots=True)
class LockedLogin:
    login: str
    entry: ThrottleEntry
    remaining_minutes: int


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Where a login attempt came from, for the audit trail."""

    source_ip: str | None = None
    user_agent: str | None = None


class AuthService:
    """Credential check guarded by the per-login throttle, with audit logging."""

    def __init__(
        self,
        users: UserRepository,
        ledger: ThrottleLedger,
        audit: LoginAuditLog,
        tokens: TokenService,
        *,
        policy: ThrottlePolicy | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._users = users
        self._ledger = ledger
        self._audit = audit
        self._tokens = tokens
        self._policy = policy or ThrottlePolicy()
        self._clock = clock

    async def login(self, login: str | None, password: str | None, context: RequestContext | None = None) -> LoginResult:
        context = context or RequestContext()
        now = self._clock()
        login_input = str(login or "").strip()
        key = normalize_login(login_input)
        password_input = "" if password is None else str(password)

        if not key:
            await self._record(now, login_input, LoginOutcome.MISSING_FIELDS, "login not informed", context)
            raise ValidationError("Login and password are required")

        stored = await self._ledger.get(key)
        entry, locked = throttle.evaluate(stored, now)
        if locked:
            await self._reject_locked(now, login_input, entry, context)
        if entry != stored:
            # lockout has elapsed
            await self._ledger.put(key, entry)

        if not password_input:
            await self._register_failure(now, login_input, key, entry, "password not informed", context)
            await self._record(now, login_input, LoginOutcome.MISSING_FIELDS, "password not informed", context)
            raise ValidationError("Login and password are required")

        user = await self._users.find_by_login(key)
        if user is None or user.password != password_input:
            detail = "user_not_found" if user is None else "wrong_password"
            await self._register_failure(now, login_input, key, entry, detail, context, user=user)
            await self._record(now, login_input, LoginOutcome.INVALID_CREDENTIALS, detail, context, user=user)
            raise Unauthenticated(INVALID_CREDENTIALS_MESSAGE)

        if not user.active:
            await self._record(now, login_input, LoginOutcome.INACTIVE_USER, "user is inactive", context, user=user)
            raise Forbidden("User is deactivated. Contact the administrator.")

        await self._ledger.clear(key)
        await self._record(now, login_input, LoginOutcome.SUCCESS, "", context, user=user)
        token = self._tokens.issue(Identity(id=user.id, name=user.name, role=user.role))
        return LoginResult(token=token, user=user)

    async def unlock(self, login: str, *, actor: Identity, context: RequestContext | None = None) -> None:
        """Reset the throttle state of ``login`` regardless of its current state."""

        key = normalize_login(login)
        if not key:
            raise ValidationError("Login is required")
        now = self._clock()
        await self._ledger.clear(key)
        logger.info("Login %s unlocked by %s", key, actor.name)
        await self._record(
            now,
            key,
            LoginOutcome.MANUAL_UNLOCK,
            f"unlocked by {actor.name} (id {actor.id})",
            context or RequestContext(),
        )

    async def forget(self, login: str) -> None:
        """Drop the throttle entry of a login that no longer exists."""

        await self._ledger.remove(login)

    async def locked_logins(self) -> list[LockedLogin]:
        now = self._clock()
        return [
            LockedLogin(login=login, entry=entry, remaining_minutes=throttle.remaining_minutes(entry, now))
            for login, entry in await self._ledger.locked(now)
        ]

    async def _register_failure(
        self,
        now: datetime,
        login_input: str,
        key: str,
        entry: ThrottleEntry,
        detail: str,
        context: RequestContext,
        *,
        user: User | None = None,
    ) -> None:
        updated = throttle.register_failure(entry, now, self._policy)
        await self._ledger.put(key, updated)
        if throttle.is_locked(updated, now):
            logger.warning("Login %s locked after %d failed attempts", key, updated.fail_count)
            await self._reject_locked(now, login_input, updated, context, user=user, detail=detail)

    async def _reject_locked(
        self,
        now: datetime,
        login_input: str,
        entry: ThrottleEntry,
        context: RequestContext,
        *,
        user: User | None = None,
        detail: str = "",
    ) -> NoReturn:
        minutes = throttle.remaining_minutes(entry, now)
        message = f"blocked until {entry.blocked_until.isoformat()}" if entry.blocked_until else "blocked"
        if detail:
            message = f"{detail}; {message}"
        await self._record(now, login_input, LoginOutcome.LOCKED_BY_ATTEMPTS, message, context, user=user)
        raise RateLimited(
            f"Too many login attempts. Try again in {minutes} minute(s).",
            retry_after_minutes=minutes,
        )

    async def _record(
        self,
        now: datetime,
        login_input: str,
        outcome: LoginOutcome,
        detail: str,
        context: RequestContext,
        *,
        user: User | None = None,
    ) -> None:
        level = logging.INFO if outcome in _ROUTINE_OUTCOMES else logging.WARNING
        logger.log(level, "Login %s for %r from %s", outcome.value, login_input, context.source_ip or "unknown")
        await self._audit.record(
            timestamp=now,
            login_attempted=login_input,
            outcome=outcome,
            detail=detail,
            source_ip=context.source_ip,
            user_agent=context.user_agent,
            user_id=user.id if user else None,
            role=user.role.value if user else None,
            active=user.active if user else None,
        )
