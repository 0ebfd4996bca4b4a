"""Authentication: session tokens, login throttling and the login audit trail."""

from .audit import LoginAuditEvent, LoginAuditLog, LoginOutcome
from .ledger import ThrottleLedger
from .service import AuthService, LockedLogin, LoginResult, RequestContext
from .throttle import ThrottleEntry, ThrottlePolicy
from .tokens import Identity, TokenService

__all__ = [
    "AuthService",
    "Identity",
    "LockedLogin",
    "LoginAuditEvent",
    "LoginAuditLog",
    "LoginOutcome",
    "LoginResult",
    "RequestContext",
    "ThrottleEntry",
    "ThrottleLedger",
    "ThrottlePolicy",
    "TokenService",
]
