"""
FastAPI application factory.

Assembles the app, builds the credential issuer and the backing stores
(PostgreSQL via SQLAlchemy, or in-process when ``USE_MEMORY_STORE`` is
set), and registers the routers. Database schema is managed by
Alembic — NOT create_all.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from authsessions.controllers.auth_controller import router as auth_router
from authsessions.controllers.security_controller import router as security_router
from authsessions.core.clock import Clock, SystemClock
from authsessions.core.config import Settings
from authsessions.core.config import settings as default_settings
from authsessions.core.database import build_engine, build_session_factory
from authsessions.core.security import CredentialIssuer
from authsessions.services.memory_store import MemorySessionStore, MemoryUserRepository
from authsessions.services.session_store import SessionStoreError, SqlSessionStore
from authsessions.services.user_service import SqlUserRepository

logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, clock: Clock | None = None) -> FastAPI:
    settings = settings or default_settings
    clock = clock or SystemClock()

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ── Shared services ──────────────────────────────────────────────
    app.state.settings = settings
    app.state.clock = clock
    app.state.issuer = CredentialIssuer(settings, clock)
    app.state.engine = None
    if settings.USE_MEMORY_STORE:
        app.state.users = MemoryUserRepository()
        app.state.sessions = MemorySessionStore()
    else:
        engine = build_engine(settings)
        session_factory = build_session_factory(engine)
        app.state.engine = engine
        app.state.users = SqlUserRepository(session_factory)
        app.state.sessions = SqlSessionStore(session_factory)

    # ── Register routers ─────────────────────────────────────────────
    app.include_router(auth_router)
    app.include_router(security_router)

    # ── Error handlers ───────────────────────────────────────────────
    @app.exception_handler(SessionStoreError)
    async def session_store_error(request: Request, exc: SessionStoreError):
        logger.exception("Session storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Session storage unavailable"},
        )

    # ── Startup / Shutdown ───────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup() -> None:
        backend = "memory" if settings.USE_MEMORY_STORE else "postgres"
        logger.info("%s started with %s session store.", settings.APP_NAME, backend)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        if app.state.engine is not None:
            await app.state.engine.dispose()
            logger.info("Database engine disposed.")

    # ── Health check ─────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
