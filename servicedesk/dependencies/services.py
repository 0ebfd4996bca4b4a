from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from servicedesk.auth.audit import LoginAuditLog
from servicedesk.auth.service import AuthService
from servicedesk.catalog.service import CategoryService, ClientService, GroupService
from servicedesk.core.errors import ServiceUnavailable
from servicedesk.tickets.service import TicketService
from servicedesk.users.service import UserService


def _from_state(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise ServiceUnavailable(f"{label} service is not configured")
    return service


async def get_auth_service(request: Request) -> AuthService:
    return _from_state(request, "auth_service", "Auth")


async def get_login_audit(request: Request) -> LoginAuditLog:
    return _from_state(request, "login_audit", "Login audit")


async def get_user_service(request: Request) -> UserService:
    return _from_state(request, "user_service", "User")


async def get_ticket_service(request: Request) -> TicketService:
    return _from_state(request, "ticket_service", "Ticket")


async def get_client_service(request: Request) -> ClientService:
    return _from_state(request, "client_service", "Client")


async def get_category_service(request: Request) -> CategoryService:
    return _from_state(request, "category_service", "Category")


async def get_group_service(request: Request) -> GroupService:
    return _from_state(request, "group_service", "Group")


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
LoginAuditDep = Annotated[LoginAuditLog, Depends(get_login_audit)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
ClientServiceDep = Annotated[ClientService, Depends(get_client_service)]
CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
GroupServiceDep = Annotated[GroupService, Depends(get_group_service)]
