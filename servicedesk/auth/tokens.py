"""Signed, self-contained session tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from servicedesk.core.clock import Clock, utc_now
from servicedesk.core.errors import Unauthenticated
from servicedesk.users.models import Role

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = timedelta(hours=8)


@dataclass(frozen=True, slots=True)
class Identity:
    """Caller identity carried by a verified token."""

    id: str
    name: str
    role: Role

    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class TokenService:
    """Issue and verify HMAC-signed JWTs.

    Verification is purely cryptographic plus the ``exp`` check, which runs
    against the injected clock. There is no server-side session state, so
    tokens stay valid until they expire.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Clock = utc_now,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl
        self._clock = clock

    def issue(self, identity: Identity) -> str:
        issued_at = self._clock()
        claims: dict[str, Any] = {
            "sub": identity.id,
            "id": identity.id,
            "name": identity.name,
            "role": identity.role.value,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str | None) -> Identity:
        if not token:
            raise Unauthenticated("Token not provided")
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.info("Rejected session token: %s", exc)
            raise Unauthenticated("Invalid token") from exc

        expires_at = claims.get("exp")
        if not isinstance(expires_at, int) or isinstance(expires_at, bool):
            raise Unauthenticated("Invalid token")
        if self._clock().timestamp() > expires_at:
            raise Unauthenticated("Token expired")

        try:
            return Identity(id=str(claims["id"]), name=str(claims["name"]), role=Role(claims["role"]))
        except (KeyError, ValueError) as exc:
            raise Unauthenticated("Invalid token") from exc
