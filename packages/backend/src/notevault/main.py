"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. This is also the one place process-wide collaborators are
built: the session token service (signing secret), the mailer and the
Google verifier are constructed from Settings once and stored on
app.state. Tests pass their own fakes in instead.

Error policy: every failure leaves as a JSON {message} body.
- NoteVaultError → its own status code and message
- request validation → 400
- anything else → 500 "Server error", logged with traceback, never leaked.
  UnhandledErrorMiddleware answers these inside the middleware stack so
  they keep the usual headers; the catch-all handler only sees failures
  raised by the outer middleware itself.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notevault import __version__
from notevault.api import api_router
from notevault.auth.google import GoogleIdentityVerifier, IdentityVerifier
from notevault.auth.jwt import SessionTokenService
from notevault.config import Settings, settings as default_settings
from notevault.errors import NoteVaultError
from notevault.middleware.errors import UnhandledErrorMiddleware
from notevault.middleware.request_id import RequestIdMiddleware
from notevault.middleware.security import SecurityHeadersMiddleware
from notevault.services.mailer import Mailer, SmtpMailer

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    logger.info(
        "notevault.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        smtp_enabled=settings.smtp_enabled,
        google_enabled=bool(settings.google_client_id),
    )

    yield

    logger.info("notevault.shutdown")

    from notevault.db.engine import engine
    await engine.dispose()


# ─── Exception handlers ─────────────────────────────────


async def _handle_app_error(request: Request, exc: NoteVaultError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request.failed", error=type(exc).__name__, message=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=exc.headers,
    )


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"message": detail})


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", error=type(exc).__name__)
    return JSONResponse(status_code=500, content={"message": "Server error"})


def create_app(
    settings: Optional[Settings] = None,
    *,
    mailer: Optional[Mailer] = None,
    identity_verifier: Optional[IdentityVerifier] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings

    app = FastAPI(
        title="NoteVault",
        description="Personal notes with OTP, password and Google sign-in",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Process-wide collaborators ───────────────────────
    app.state.settings = settings
    app.state.session_tokens = SessionTokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        lifetime=timedelta(days=settings.session_token_expire_days),
    )
    app.state.mailer = mailer or SmtpMailer(settings)
    app.state.identity_verifier = identity_verifier or GoogleIdentityVerifier(
        client_id=settings.google_client_id,
        certs_url=settings.google_certs_url,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → UnhandledError → handler
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(NoteVaultError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: notevault.main:app)
app = create_app()
