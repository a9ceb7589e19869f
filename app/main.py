"""
HTTP Frontend for Ledger Tracker

A thin FastAPI layer over the core:
1. Decodes the bearer token into a RequestContext
2. Calls the store / importer / admin services
3. Maps typed failures to status codes

STATUS MAPPING:
- NotFoundError          404
- AccessDeniedError      403
- LedgerValidationError  400 (with row errors for CSV imports)
- ServerError            500
- missing/invalid token  401

Every error body is {"message": ...}.

Run with:
    uvicorn app.main:app
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.routes import ledgers, messages, transactions, users
from src import __version__
from src.config import AuthSettings, get_settings
from src.errors import (
    AccessDeniedError,
    LedgerError,
    LedgerValidationError,
    NotFoundError,
    ServerError,
)
from src.orchestrator import AppComponents, create_app_components


logger = structlog.get_logger("ledger_tracker.http")


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **extra})


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(AccessDeniedError)
    async def handle_access_denied(request: Request, exc: AccessDeniedError):
        return _error(403, str(exc))

    @app.exception_handler(LedgerValidationError)
    async def handle_validation(request: Request, exc: LedgerValidationError):
        if exc.errors:
            return _error(400, str(exc), errors=exc.errors)
        return _error(400, str(exc))

    @app.exception_handler(ServerError)
    async def handle_server_error(request: Request, exc: ServerError):
        logger.error("server_error", path=request.url.path, error=str(exc))
        return _error(500, "Server error")

    @app.exception_handler(LedgerError)
    async def handle_ledger_error(request: Request, exc: LedgerError):
        logger.error("unhandled_ledger_error", path=request.url.path, error=str(exc))
        return _error(500, "Server error")

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return _error(400, "Invalid request", errors=errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))


def create_app(
    components: Optional[AppComponents] = None,
    auth_settings: Optional[AuthSettings] = None,
    bootstrap_admin_email: Optional[str] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        components: Pre-built components (tests pass in-memory ones).
                    Defaults to the configured backend.
        auth_settings: Token settings. Defaults to AUTH_* environment.
        bootstrap_admin_email: Platform admin to create on startup.
                    Defaults to the configured one when components
                    are built here.
    """
    settings = get_settings()

    if components is None:
        components = create_app_components()
        bootstrap_admin_email = bootstrap_admin_email or settings.app.bootstrap_admin_email
    bootstrap_admin_name = settings.app.bootstrap_admin_name

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await components.bootstrap_admin(bootstrap_admin_email, bootstrap_admin_name)
        yield

    app = FastAPI(title="Ledger Tracker", version=__version__, lifespan=lifespan)
    app.state.components = components
    app.state.auth_settings = auth_settings or settings.auth

    register_exception_handlers(app)

    app.include_router(ledgers.router)
    app.include_router(transactions.router)
    app.include_router(users.router)
    app.include_router(messages.router)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
