from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from agrihero.apps.api.errors import (
    database_exception_handler,
    duplicate_key_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from agrihero.apps.api.response import API_PREFIX
from agrihero.apps.api.routes.audit import router as audit_router
from agrihero.apps.api.routes.auth import router as auth_router
from agrihero.apps.api.routes.compliance import router as compliance_router
from agrihero.apps.api.routes.contents import router as contents_router
from agrihero.apps.api.routes.feature_flags import router as feature_flags_router
from agrihero.apps.api.routes.health import router as health_router
from agrihero.apps.api.routes.metrics import router as metrics_router
from agrihero.apps.api.routes.produce_markets import router as produce_markets_router
from agrihero.apps.api.routes.users import router as users_router
from agrihero.core.config import Settings, get_settings
from agrihero.core.errors import DatabaseError, DuplicateKeyError
from agrihero.core.logging import configure_logging
from agrihero.persistence.memory import MemoryRepository
from agrihero.persistence.repository import Repository
from agrihero.persistence.sql import SqlRepository
from agrihero.services.auth.sessions import SessionStore
from agrihero.services.seed import seed_demo_data


logger = logging.getLogger(__name__)


def build_repository(settings: Settings) -> Repository:
    # Pick the persistence backend once at process start.
    if settings.storage_backend == "memory":
        return MemoryRepository()
    if settings.storage_backend == "sql":
        return SqlRepository.from_url(settings.database_url, create_schema=settings.database_create_schema)
    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


def create_app(settings: Settings | None = None, repository: Repository | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    repository = repository if repository is not None else build_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await repository.startup()
        if settings.seed_demo_data:
            await seed_demo_data(repository, settings)
        logger.info("app_started backend=%s", settings.storage_backend)
        try:
            yield
        finally:
            await repository.shutdown()

    app = FastAPI(title="AgriHero6 Admin API", lifespan=lifespan)
    app.state.settings = settings
    app.state.repository = repository
    app.state.sessions = SessionStore(ttl_hours=settings.session_ttl_hours)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):  # type: ignore[override]
        # Preserve incoming request IDs or assign a new one for traceability.
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers.setdefault("X-Request-Id", request_id)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        return await http_exception_handler(request, exc)

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        return await http_exception_handler(request, exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        return await validation_exception_handler(request, exc)

    @app.exception_handler(DuplicateKeyError)
    async def _duplicate_key_exception_handler(request: Request, exc: DuplicateKeyError):
        return await duplicate_key_exception_handler(request, exc)

    @app.exception_handler(DatabaseError)
    async def _database_exception_handler(request: Request, exc: DatabaseError):
        return await database_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        return await unhandled_exception_handler(request, exc)

    app.include_router(health_router, prefix=API_PREFIX)
    # Session endpoints consumed by the dashboard's login screen.
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(contents_router, prefix=API_PREFIX)
    app.include_router(feature_flags_router, prefix=API_PREFIX)
    app.include_router(compliance_router, prefix=API_PREFIX)
    app.include_router(metrics_router, prefix=API_PREFIX)
    # Audit trail reads are super-admin only; see the router's guard.
    app.include_router(audit_router, prefix=API_PREFIX)
    app.include_router(produce_markets_router, prefix=API_PREFIX)

    return app


app = create_app()
