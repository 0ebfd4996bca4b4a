import pytest

from servicedesk.auth.audit import LoginAuditLog
from servicedesk.auth.ledger import ThrottleLedger
from servicedesk.auth.service import AuthService
from servicedesk.auth.tokens import TokenService
from servicedesk.core.errors import Conflict, Forbidden, NotFound, RateLimited, Unauthenticated, ValidationError
from servicedesk.storage import InMemoryStorage, RecordStore
from servicedesk.users.models import Role
from servicedesk.users.repository import UserRepository, default_admin_seed
from servicedesk.users.service import UserService


@pytest.fixture
def services(clock):
    users = UserRepository(
        RecordStore("users", InMemoryStorage(), seed=default_admin_seed(name="Admin", login="admin", password="admin"))
    )
    ledger = ThrottleLedger(RecordStore("login_attempts", InMemoryStorage()))
    auth = AuthService(
        users,
        ledger,
        LoginAuditLog(RecordStore("login_audit", InMemoryStorage())),
        TokenService("secret", clock=clock),
        clock=clock,
    )
    return UserService(users, auth, clock=clock), auth, ledger


@pytest.mark.asyncio
async def test_bootstrap_admin_is_seeded(services):
    service, _, _ = services
    users = await service.list_users()
    assert [(user.id, user.login, user.role) for user in users] == [("1", "admin", Role.ADMIN)]


@pytest.mark.asyncio
async def test_create_user_rejects_duplicate_login_ignoring_case(services):
    service, _, _ = services
    await service.create_user(name="Ana", login="ana", password="pw", role="analyst")

    with pytest.raises(Conflict) as exc:
        await service.create_user(name="Ana 2", login="ANA", password="pw", role="analyst")
    assert exc.value.status_code == 400
    assert exc.value.message == "User already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [
        {"name": "", "login": "x", "password": "pw", "role": "analyst"},
        {"name": "X", "login": " ", "password": "pw", "role": "analyst"},
        {"name": "X", "login": "x", "password": "", "role": "analyst"},
        {"name": "X", "login": "x", "password": "pw", "role": ""},
    ],
)
async def test_create_user_requires_all_fields(services, fields):
    service, _, _ = services
    with pytest.raises(ValidationError):
        await service.create_user(**fields)


@pytest.mark.asyncio
async def test_create_user_rejects_unknown_role(services):
    service, _, _ = services
    with pytest.raises(ValidationError):
        await service.create_user(name="X", login="x", password="pw", role="superuser")


@pytest.mark.asyncio
async def test_change_password_takes_effect_on_login(services):
    service, auth, _ = services
    user = await service.create_user(name="Ana", login="ana", password="old", role="analyst")

    updated = await service.change_password(user.id, "new")

    assert updated.updated_at is not None
    assert (await auth.login("ana", "new")).user.id == user.id
    with pytest.raises(Unauthenticated):
        await auth.login("ana", "old")


@pytest.mark.asyncio
async def test_change_password_requires_value_and_existing_user(services):
    service, _, _ = services
    with pytest.raises(ValidationError):
        await service.change_password("1", "")
    with pytest.raises(NotFound):
        await service.change_password("999", "pw")


@pytest.mark.asyncio
async def test_self_modification_guards(services, admin_identity):
    service, _, _ = services

    with pytest.raises(Forbidden):
        await service.change_role("1", "analyst", actor=admin_identity)
    with pytest.raises(Forbidden):
        await service.set_active("1", False, actor=admin_identity)
    with pytest.raises(Forbidden):
        await service.delete_user("1", actor=admin_identity)

    user = await service.get_user("1")
    assert user.role == Role.ADMIN
    assert user.active


@pytest.mark.asyncio
async def test_admin_can_reactivate_self(services, admin_identity):
    service, _, _ = services
    assert (await service.set_active("1", True, actor=admin_identity)).active


@pytest.mark.asyncio
async def test_change_role_of_other_user(services, admin_identity):
    service, _, _ = services
    user = await service.create_user(name="Ana", login="ana", password="pw", role="analyst")

    updated = await service.change_role(user.id, "admin", actor=admin_identity)

    assert updated.role == Role.ADMIN


@pytest.mark.asyncio
async def test_delete_user_purges_throttle_entry(services, admin_identity):
    service, auth, ledger = services
    user = await service.create_user(name="Ana", login="ana", password="pw", role="analyst")
    for _ in range(4):
        with pytest.raises(Unauthenticated):
            await auth.login("ana", "bad")
    with pytest.raises(RateLimited):
        await auth.login("ana", "bad")

    await service.delete_user(user.id, actor=admin_identity)

    assert (await ledger.get("ana")).is_clear
    with pytest.raises(Unauthenticated):
        await auth.login("ana", "pw")
    with pytest.raises(NotFound):
        await service.get_user(user.id)


@pytest.mark.asyncio
async def test_unlock_user_by_id(services, admin_identity):
    service, auth, ledger = services
    user = await service.create_user(name="Ana", login="ana", password="pw", role="analyst")
    for _ in range(4):
        with pytest.raises(Unauthenticated):
            await auth.login("ana", "bad")
    with pytest.raises(RateLimited):
        await auth.login("ana", "bad")

    await service.unlock_user(user.id, actor=admin_identity)

    assert (await ledger.get("ana")).is_clear
    assert (await auth.login("ana", "pw")).user.name == "Ana"
