from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from servicedesk.auth.service import RequestContext
from servicedesk.auth.tokens import Identity, TokenService
from servicedesk.core.errors import Forbidden, ServiceUnavailable, Unauthenticated
from servicedesk.users.models import Role

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    service = getattr(request.app.state, "token_service", None)
    if service is None:
        raise ServiceUnavailable("Token service is not configured")
    return service


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
) -> Identity:
    """Resolve the caller from the ``Authorization: Bearer`` header.

    The verified identity is cached on the request so nested dependencies do
    not verify the token twice.
    """

    cached = getattr(request.state, "identity", None)
    if isinstance(cached, Identity):
        return cached

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated("Token not provided")

    identity = get_token_service(request).verify(credentials.credentials)
    request.state.identity = identity
    return identity


def role_required(role: Role) -> Callable[[Identity], Identity]:
    """Dependency factory ensuring the current user has the requested role."""

    async def dependency(user: Annotated[Identity, Depends(get_current_user)]) -> Identity:
        if user.role != role:
            raise Forbidden("Insufficient permissions")
        return user

    return dependency


def get_request_context(request: Request) -> RequestContext:
    """Caller address and user agent for the login audit trail.

    ``X-Forwarded-For`` is client-controlled, so it only replaces the socket
    address when ``trust_forwarded_for`` is enabled.
    """

    source_ip = request.client.host if request.client else None
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        source_ip = forwarded or source_ip
    return RequestContext(source_ip=source_ip, user_agent=request.headers.get("user-agent"))


require_admin = role_required(Role.ADMIN)

CurrentUser = Annotated[Identity, Depends(get_current_user)]
AdminUser = Annotated[Identity, Depends(require_admin)]
ClientContext = Annotated[RequestContext, Depends(get_request_context)]
