"""Auth API — OTP signup, password login, Google sign-in, session probing.

Learn: Routes for the account lifecycle:
- POST /auth/request-otp → create/refresh account, email a 6-digit code
- POST /auth/verify-otp  → code → verified account + session cookie
- POST /auth/login       → email/password → session cookie
- POST /auth/google      → Google ID token → session cookie
- GET  /auth/me          → current user, or null (never errors)
- POST /auth/logout      → clear the session cookie

Routes only translate HTTP to AuthService calls; NoteVaultError
subclasses raised below are turned into {message} bodies by the
exception handlers in main.py.
"""

from datetime import timedelta
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.auth.dependencies import (
    CurrentIdentity,
    get_current_user_optional,
    get_identity_verifier,
    get_mailer,
    get_session_tokens,
)
from notevault.auth.google import ExternalIdentityLinker, IdentityVerifier
from notevault.auth.jwt import SessionTokenService
from notevault.auth.otp import OtpIssuer
from notevault.config import Settings
from notevault.db.engine import get_db
from notevault.errors import InvalidTokenError, NoteVaultError, ServerError
from notevault.schemas.auth import (
    GoogleSignInBody,
    LoginBody,
    RequestOtpBody,
    UserPayload,
    UserRead,
    VerifyOtpBody,
)
from notevault.schemas.common import Envelope, OkPayload
from notevault.services.account_store import AccountStore
from notevault.services.auth_service import AuthService, SessionGrant
from notevault.services.mailer import Mailer

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _auth_svc(
    request: Request,
    db: AsyncSession = Depends(get_db),
    tokens: SessionTokenService = Depends(get_session_tokens),
    mailer: Mailer = Depends(get_mailer),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> AuthService:
    settings = _settings(request)
    store = AccountStore(db)
    otp = OtpIssuer(
        store,
        mailer,
        lifetime=timedelta(minutes=settings.otp_expire_minutes),
        password_rounds=settings.bcrypt_rounds,
    )
    return AuthService(
        store=store,
        tokens=tokens,
        otp=otp,
        linker=ExternalIdentityLinker(store, verifier),
    )


def _set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def _signed_in(
    request: Request, response: Response, grant: SessionGrant, message: str
) -> dict:
    _set_session_cookie(response, _settings(request), grant.token)
    return {
        "data": {"user": UserRead.model_validate(grant.account)},
        "message": message,
    }


# ─── OTP signup ──────────────────────────────────────────


@router.post("/request-otp", response_model=Envelope[None])
async def request_otp(body: RequestOtpBody, svc: AuthService = Depends(_auth_svc)):
    """Create or refresh an account and email it a one-time code."""
    await svc.request_otp(body.name, body.email, body.password)
    return {"data": None, "message": "OTP sent successfully"}


@router.post("/verify-otp", response_model=Envelope[UserPayload])
async def verify_otp(
    body: VerifyOtpBody,
    request: Request,
    response: Response,
    svc: AuthService = Depends(_auth_svc),
):
    """Verify the emailed code and start a session."""
    grant = await svc.verify_otp(body.email, body.otp)
    return _signed_in(request, response, grant, "Verified")


# ─── Password login ─────────────────────────────────────


@router.post("/login", response_model=Envelope[UserPayload])
async def login(
    body: LoginBody,
    request: Request,
    response: Response,
    svc: AuthService = Depends(_auth_svc),
):
    """Email + password → session cookie (verified accounts only)."""
    grant = await svc.login(body.email, body.password)
    return _signed_in(request, response, grant, "Logged in")


# ─── Google sign-in ─────────────────────────────────────


@router.post("/google", response_model=Envelope[UserPayload])
async def google_sign_in(
    body: GoogleSignInBody,
    request: Request,
    response: Response,
    svc: AuthService = Depends(_auth_svc),
):
    """Exchange a Google ID token for a local session."""
    try:
        grant = await svc.google_sign_in(body.id_token)
    except InvalidTokenError as e:
        logger.warning("auth.google.failed", error=e.message)
        raise ServerError("Google login failed") from e
    return _signed_in(request, response, grant, "OK")


# ─── Session ────────────────────────────────────────────


async def _probe_identity(
    request: Request,
    tokens: SessionTokenService = Depends(get_session_tokens),
) -> Optional[CurrentIdentity]:
    # /me is a session probe: a bad token is just "not signed in".
    try:
        return await get_current_user_optional(request, tokens)
    except NoteVaultError:
        return None


@router.get("/me", response_model=Envelope[UserPayload])
async def get_me(
    identity: Optional[CurrentIdentity] = Depends(_probe_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get the signed-in user, or null. Never fails on auth problems."""
    if identity is None:
        return {"data": {"user": None}}

    account = await AccountStore(db).get_by_id(identity.account_id)
    if account is None:
        return {"data": {"user": None}}
    return {"data": {"user": UserRead.model_validate(account)}}


@router.post("/logout", response_model=Envelope[OkPayload])
async def logout(request: Request, response: Response):
    """Drop the session cookie. The token itself is not revoked server-side."""
    settings = _settings(request)
    response.delete_cookie(
        key=settings.cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return {"data": {"ok": True}}
