from datetime import timedelta

import pytest
from jose import jwt

from servicedesk.auth.tokens import Identity, TokenService
from servicedesk.core.errors import Unauthenticated
from servicedesk.users.models import Role

SECRET = "unit-test-secret"
IDENTITY = Identity(id="42", name="Ana Lima", role=Role.ANALYST)


def test_issue_and_verify_round_trip(clock):
    service = TokenService(SECRET, clock=clock)
    token = service.issue(IDENTITY)

    assert service.verify(token) == IDENTITY
    claims = jwt.get_unverified_claims(token)
    assert claims["exp"] - claims["iat"] == 8 * 3600
    assert claims["iat"] == int(clock().timestamp())
    assert claims["sub"] == "42"


def test_token_just_before_expiry_is_accepted(clock):
    service = TokenService(SECRET, clock=clock)
    token = service.issue(IDENTITY)

    clock.advance(hours=8)
    assert service.verify(token).id == "42"


def test_token_just_after_expiry_is_rejected(clock):
    service = TokenService(SECRET, clock=clock)
    token = service.issue(IDENTITY)

    clock.advance(hours=8, seconds=1)
    with pytest.raises(Unauthenticated) as exc:
        service.verify(token)
    assert exc.value.message == "Token expired"


def test_expiry_follows_the_injected_clock_not_the_wall_clock(clock):
    # the fixture clock sits years in the past, so the wall clock alone would call this expired
    service = TokenService(SECRET, clock=clock)
    token = service.issue(IDENTITY)

    assert service.verify(token).name == "Ana Lima"


def test_token_issued_long_ago_is_expired_for_a_current_verifier(clock):
    token = TokenService(SECRET, clock=clock).issue(IDENTITY)

    with pytest.raises(Unauthenticated) as exc:
        TokenService(SECRET).verify(token)
    assert exc.value.message == "Token expired"


def test_token_signed_with_other_secret_is_rejected(clock):
    token = TokenService("another-secret", clock=clock).issue(IDENTITY)
    with pytest.raises(Unauthenticated) as exc:
        TokenService(SECRET, clock=clock).verify(token)
    assert exc.value.message == "Invalid token"


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token_is_rejected(token):
    with pytest.raises(Unauthenticated) as exc:
        TokenService(SECRET).verify(token)
    assert exc.value.message == "Token not provided"


def test_malformed_token_is_rejected():
    with pytest.raises(Unauthenticated):
        TokenService(SECRET).verify("not-a-jwt")


def test_token_without_identity_claims_is_rejected(clock):
    exp = int((clock() + timedelta(hours=1)).timestamp())
    token = jwt.encode({"sub": "42", "exp": exp}, SECRET, algorithm="HS256")
    with pytest.raises(Unauthenticated) as exc:
        TokenService(SECRET, clock=clock).verify(token)
    assert exc.value.message == "Invalid token"


def test_token_without_expiry_is_rejected(clock):
    token = jwt.encode({"id": "42", "name": "Ana Lima", "role": "analyst"}, SECRET, algorithm="HS256")
    with pytest.raises(Unauthenticated) as exc:
        TokenService(SECRET, clock=clock).verify(token)
    assert exc.value.message == "Invalid token"


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenService("")
