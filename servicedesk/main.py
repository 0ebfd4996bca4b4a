import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from servicedesk.api.routes import auth, categories, clients, groups, ping, tickets, users
from servicedesk.auth.audit import LoginAuditLog
from servicedesk.auth.ledger import ThrottleLedger
from servicedesk.auth.service import AuthService
from servicedesk.auth.throttle import ThrottlePolicy
from servicedesk.auth.tokens import TokenService
from servicedesk.catalog.repository import CategoryRepository, ClientRepository, GroupRepository
from servicedesk.catalog.service import CategoryService, ClientService, GroupService
from servicedesk.core.clock import Clock, MonotonicIds, utc_now
from servicedesk.core.config import Settings, get_settings
from servicedesk.core.errors import install_exception_handlers
from servicedesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from servicedesk.storage import JsonFileStorage, RecordStore
from servicedesk.tickets.attachments import AttachmentStorage
from servicedesk.tickets.repository import TicketRepository
from servicedesk.tickets.service import TicketService
from servicedesk.users.repository import UserRepository, default_admin_seed
from servicedesk.users.service import UserService

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = Settings.model_fields["jwt_secret"].default


def _store(settings: Settings, name: str, **kwargs) -> RecordStore:
    return RecordStore(name, JsonFileStorage(settings.data_dir / f"{name}.json"), **kwargs)


def build_services(app: FastAPI, settings: Settings, *, clock: Clock = utc_now) -> None:
    """Wire stores, repositories and services onto ``app.state``."""

    ids = MonotonicIds(clock)
    user_repository = UserRepository(
        _store(
            settings,
            "users",
            seed=default_admin_seed(
                name=settings.default_admin_name,
                login=settings.default_admin_login,
                password=settings.default_admin_password,
            ),
        )
    )
    token_service = TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(minutes=settings.token_ttl_minutes),
        clock=clock,
    )
    login_audit = LoginAuditLog(
        _store(settings, "login_audit"),
        max_entries=settings.login_audit_max_entries,
        ids=ids,
    )
    auth_service = AuthService(
        user_repository,
        ThrottleLedger(_store(settings, "login_attempts")),
        login_audit,
        token_service,
        policy=ThrottlePolicy(
            max_attempts=settings.login_max_attempts,
            window=timedelta(minutes=settings.login_window_minutes),
            lockout=timedelta(minutes=settings.login_lockout_minutes),
        ),
        clock=clock,
    )
    attachments = AttachmentStorage(
        settings.upload_dir,
        max_bytes=settings.upload_max_bytes,
        max_files=settings.upload_max_files,
    )

    app.state.settings = settings
    app.state.token_service = token_service
    app.state.login_audit = login_audit
    app.state.auth_service = auth_service
    app.state.user_service = UserService(user_repository, auth_service, ids=ids, clock=clock)
    app.state.ticket_service = TicketService(
        TicketRepository(_store(settings, "tickets")),
        user_repository,
        attachments,
        ids=ids,
        clock=clock,
    )
    app.state.client_service = ClientService(ClientRepository(_store(settings, "clients")), ids=ids, clock=clock)
    app.state.category_service = CategoryService(
        CategoryRepository(_store(settings, "categories")), ids=ids, clock=clock
    )
    app.state.group_service = GroupService(GroupRepository(_store(settings, "groups")), ids=ids, clock=clock)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings: Settings = app.state.settings
    app.state.logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)
    app.state.tracer_provider = tracer_provider
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    if settings.jwt_secret == DEFAULT_JWT_SECRET and settings.environment == "production":
        logger.warning("JWT secret is the built-in default; set JWT_SECRET")
    try:
        yield
    finally:
        shutdown_tracer(tracer_provider)


def create_app(settings: Settings | None = None, *, clock: Clock = utc_now) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    build_services(app, settings, clock=clock)
    install_exception_handlers(app)

    app.include_router(ping.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(tickets.router)
    app.include_router(clients.router)
    app.include_router(categories.router)
    app.include_router(groups.router)

    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")
    return app


app = create_app()
