"""Auth service — the sign-in flows that end in a session.

Learn: Each public method is one way of proving identity. All of them
finish the same way: the account goes to SessionTokenService.issue()
and the caller gets back a SessionGrant (account + token) to put in
the session cookie.

Login error messages: unknown email and wrong password both read
"Invalid credentials" with the same status, so the response does not
reveal which emails are registered. They are still separate exception
types for logging and tests.
"""

from dataclasses import dataclass

import structlog

from notevault.auth.google import ExternalIdentityLinker
from notevault.auth.jwt import SessionTokenService
from notevault.auth.otp import OtpIssuer
from notevault.auth.password import verify_password
from notevault.db.models import Account
from notevault.errors import (
    InvalidCredentialsError,
    NotFoundError,
    UnverifiedError,
    ValidationError,
)
from notevault.services.account_store import AccountStore

logger = structlog.get_logger()


@dataclass
class SessionGrant:
    account: Account
    token: str


class AuthService:
    """Business logic for signup, verification and sign-in."""

    def __init__(
        self,
        store: AccountStore,
        tokens: SessionTokenService,
        otp: OtpIssuer,
        linker: ExternalIdentityLinker,
    ):
        self.store = store
        self.tokens = tokens
        self.otp = otp
        self.linker = linker

    def _grant(self, account: Account) -> SessionGrant:
        return SessionGrant(account=account, token=self.tokens.issue(account))

    # ─── OTP signup ─────────────────────────────────────

    async def request_otp(self, name: str, email: str, password: str) -> Account:
        return await self.otp.issue(name, email, password)

    async def verify_otp(self, email: str, code: str) -> SessionGrant:
        account = await self.otp.verify(email, code)
        return self._grant(account)

    # ─── Password login ─────────────────────────────────

    async def login(self, email: str, password: str) -> SessionGrant:
        if not email.strip() or not password:
            raise ValidationError("Missing fields")

        account = await self.store.get_by_email(email)
        if account is None:
            logger.info("auth.login_failed", reason="unknown_email")
            raise NotFoundError("Invalid credentials")

        if not account.is_verified:
            logger.info("auth.login_failed", reason="unverified", account_id=str(account.id))
            raise UnverifiedError()

        if not verify_password(password, account.password_hash):
            logger.info("auth.login_failed", reason="bad_password", account_id=str(account.id))
            raise InvalidCredentialsError()

        logger.info("auth.login", account_id=str(account.id))
        return self._grant(account)

    # ─── Google sign-in ─────────────────────────────────

    async def google_sign_in(self, id_token: str) -> SessionGrant:
        account = await self.linker.link_or_create(id_token)
        logger.info("auth.google.login", account_id=str(account.id))
        return self._grant(account)
