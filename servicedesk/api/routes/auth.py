from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query
from pydantic import BaseModel

from servicedesk.api.schemas import CamelModel
from servicedesk.auth.audit import LoginAuditEvent, LoginOutcome
from servicedesk.auth.service import LockedLogin
from servicedesk.dependencies.auth import AdminUser, ClientContext, CurrentUser
from servicedesk.dependencies.services import AuthServiceDep, LoginAuditDep
from servicedesk.users.models import Role

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    # Optional so that missing fields reach the audit trail instead of failing validation.
    login: str | None = None
    password: str | None = None


class SessionUser(CamelModel):
    id: str
    name: str
    role: Role
    active: bool | None = None


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: SessionUser


class SessionCheckResponse(CamelModel):
    logged_in: bool = True
    user: SessionUser


class LogoutResponse(BaseModel):
    logout: bool = True


class AuditEventResponse(CamelModel):
    id: str
    timestamp: datetime
    login_attempted: str
    outcome: LoginOutcome
    detail: str
    source_ip: str | None = None
    user_agent: str | None = None
    user_id: str | None = None
    role: str | None = None
    active: bool | None = None

    @classmethod
    def from_entity(cls, event: LoginAuditEvent) -> "AuditEventResponse":
        return cls(
            id=event.id,
            timestamp=event.timestamp,
            login_attempted=event.login_attempted,
            outcome=event.outcome,
            detail=event.detail,
            source_ip=event.source_ip,
            user_agent=event.user_agent,
            user_id=event.user_id,
            role=event.role,
            active=event.active,
        )


class LockedLoginResponse(CamelModel):
    login: str
    fail_count: int
    first_fail_at: datetime | None = None
    last_fail_at: datetime | None = None
    blocked_until: datetime | None = None
    remaining_minutes: int

    @classmethod
    def from_entity(cls, locked: LockedLogin) -> "LockedLoginResponse":
        return cls(
            login=locked.login,
            fail_count=locked.entry.fail_count,
            first_fail_at=locked.entry.first_fail_at,
            last_fail_at=locked.entry.last_fail_at,
            blocked_until=locked.entry.blocked_until,
            remaining_minutes=locked.remaining_minutes,
        )


class UnlockResponse(BaseModel):
    login: str
    unlocked: bool = True


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, service: AuthServiceDep, context: ClientContext) -> LoginResponse:
    result = await service.login(payload.login, payload.password, context)
    user = result.user
    return LoginResponse(
        token=result.token,
        user=SessionUser(id=user.id, name=user.name, role=user.role, active=user.active),
    )


@router.get("/check", response_model=SessionCheckResponse, response_model_exclude_none=True)
async def check_session(user: CurrentUser) -> SessionCheckResponse:
    return SessionCheckResponse(user=SessionUser(id=user.id, name=user.name, role=user.role))


@router.post("/logout", response_model=LogoutResponse)
async def logout() -> LogoutResponse:
    """Tokens are stateless; the client discards its copy."""

    return LogoutResponse()


@router.get("/audit", response_model=list[AuditEventResponse])
async def list_login_audit(
    audit: LoginAuditDep,
    _: AdminUser,
    limit: int = Query(default=200),
) -> list[AuditEventResponse]:
    """Most recent events first; ``limit`` is clamped to ``1..2000`` rather than rejected."""

    events = await audit.recent(limit)
    return [AuditEventResponse.from_entity(event) for event in events]


@router.get("/locks", response_model=list[LockedLoginResponse])
async def list_locked_logins(service: AuthServiceDep, _: AdminUser) -> list[LockedLoginResponse]:
    return [LockedLoginResponse.from_entity(locked) for locked in await service.locked_logins()]


@router.post("/locks/{login}/unlock", response_model=UnlockResponse)
async def unlock_login(
    login: str,
    service: AuthServiceDep,
    user: AdminUser,
    context: ClientContext,
) -> UnlockResponse:
    await service.unlock(login, actor=user, context=context)
    return UnlockResponse(login=login.strip().lower())
