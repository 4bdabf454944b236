"""FastAPI auth dependencies — the auth gate.

Learn: These are used as Depends() in route handlers to extract
and validate the current identity from the request.

Token lookup order:
1. The session cookie (set by verify-otp / login / google)
2. Authorization: Bearer <token> (CLI and non-browser clients)

Process-wide auth objects (the session token service, mailer, Google
verifier) are built once by create_app() and parked on app.state;
the getters below hand them to routes.
"""

import uuid
from typing import Optional

from fastapi import Depends, Request

from notevault.auth.google import IdentityVerifier
from notevault.auth.jwt import SessionClaims, SessionTokenService
from notevault.errors import InvalidTokenError, UnauthorizedError
from notevault.services.mailer import Mailer

_BEARER_PREFIX = "Bearer "


class CurrentIdentity:
    """Represents the authenticated account making the request.

    Learn: Downstream handlers never look at the token itself — they
    use account_id as the owner filter for every note query.
    """

    def __init__(self, account_id: uuid.UUID, email: str, name: str):
        self.account_id = account_id
        self.email = email
        self.name = name

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> "CurrentIdentity":
        return cls(account_id=claims.account_id, email=claims.email, name=claims.name)


def get_session_tokens(request: Request) -> SessionTokenService:
    return request.app.state.session_tokens


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def extract_token(request: Request) -> Optional[str]:
    """Pull the raw session token from the cookie, then the bearer header."""
    cookie_name = request.app.state.settings.cookie_name
    token = request.cookies.get(cookie_name)
    if token:
        return token

    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith(_BEARER_PREFIX):
        return authorization[len(_BEARER_PREFIX):].strip() or None
    return None


def _identity_from_token(tokens: SessionTokenService, token: str) -> CurrentIdentity:
    try:
        claims = tokens.verify(token)
    except InvalidTokenError as e:
        raise UnauthorizedError(
            e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    return CurrentIdentity.from_claims(claims)


async def get_current_user_optional(
    request: Request,
    tokens: SessionTokenService = Depends(get_session_tokens),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no token).

    A token that is present but invalid is still an error here; only
    /auth/me chooses to swallow it.
    """
    token = extract_token(request)
    if not token:
        return None
    return _identity_from_token(tokens, token)


async def get_current_user(
    request: Request,
    tokens: SessionTokenService = Depends(get_session_tokens),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no valid token)."""
    token = extract_token(request)
    if not token:
        raise UnauthorizedError(headers={"WWW-Authenticate": "Bearer"})
    identity = _identity_from_token(tokens, token)
    request.state.identity = identity
    return identity
