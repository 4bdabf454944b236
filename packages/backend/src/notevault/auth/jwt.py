"""Session token creation and verification.

Learn: A session is a stateless HS256 JWT — nothing is stored server-side.
- Claims: sub (account id), email, name, iat, exp
- Lifetime: 7 days, no refresh, no rotation
- No revocation list: logout only drops the client's copy, so a stolen
  token stays valid until exp

The signing secret is handed to SessionTokenService once, at startup
(see create_app), rather than read from global settings at call time.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from notevault.db.models import Account
from notevault.errors import InvalidTokenError

DEFAULT_SESSION_LIFETIME = timedelta(days=7)

_REQUIRED_CLAIMS = ["sub", "email", "name", "iat", "exp"]


@dataclass(frozen=True)
class SessionClaims:
    """Identity fields embedded in a session token."""

    account_id: uuid.UUID
    email: str
    name: str
    issued_at: datetime
    expires_at: datetime


class SessionTokenService:
    """Issues and verifies signed session tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime: timedelta = DEFAULT_SESSION_LIFETIME,
    ):
        if not secret:
            raise ValueError("Session signing secret cannot be empty")
        self._secret = secret
        self._algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, account: Account, now: Optional[datetime] = None) -> str:
        """Mint a token for a freshly authenticated account."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(account.id),
            "email": account.email,
            "name": account.name,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionClaims:
        """Verify signature, structure and expiry.

        Raises InvalidTokenError on any failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        try:
            return SessionClaims(
                account_id=uuid.UUID(payload["sub"]),
                email=payload["email"],
                name=payload["name"],
                issued_at=datetime.fromtimestamp(payload["iat"], timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], timezone.utc),
            )
        except (TypeError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token: {e}")
