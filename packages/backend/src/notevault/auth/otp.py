"""One-time codes for email verification.

Learn: The signup state machine lives on the account row:

  Unregistered → PendingVerification (issue) → Verified (verify)

issue() creates or refreshes the account and its code, commits, and
only then hands the code to the mailer. If delivery fails the caller
gets DeliveryError, but the code is already stored and still usable —
the failure is reported, not hidden, and not rolled back.

Re-issuing never touches is_verified: a verified account that requests
a new code (e.g. to change its password) stays verified throughout.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from notevault.auth.password import BCRYPT_ROUNDS, hash_password
from notevault.db.models import Account, as_utc
from notevault.errors import (
    ExpiredError,
    MismatchError,
    NotFoundError,
    ValidationError,
)
from notevault.services.account_store import AccountStore, normalize_email
from notevault.services.mailer import Mailer

logger = structlog.get_logger()

OTP_LIFETIME = timedelta(minutes=10)


def generate_otp_code() -> str:
    """Uniformly random 6-digit code in 100000–999999."""
    return str(100000 + secrets.randbelow(900000))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpIssuer:
    """Issues and verifies the emailed one-time codes."""

    def __init__(
        self,
        store: AccountStore,
        mailer: Mailer,
        lifetime: timedelta = OTP_LIFETIME,
        password_rounds: int = BCRYPT_ROUNDS,
        clock: Callable[[], datetime] = _utcnow,
        code_factory: Callable[[], str] = generate_otp_code,
    ):
        self.store = store
        self.mailer = mailer
        self.lifetime = lifetime
        self.password_rounds = password_rounds
        self.clock = clock
        self.code_factory = code_factory

    async def issue(self, name: str, email: str, password: str) -> Account:
        """Create or refresh an account's pending code and mail it.

        Any previously issued code stops working immediately.
        """
        if not name.strip() or not email.strip() or not password:
            raise ValidationError("All fields are required")

        code = self.code_factory()
        expires_at = self.clock() + self.lifetime
        password_hash = hash_password(password, rounds=self.password_rounds)

        account = await self.store.get_by_email(email)
        if account is None:
            account = Account(
                name=name.strip(),
                email=normalize_email(email),
                password_hash=password_hash,
                otp_code=code,
                otp_expires_at=expires_at,
            )
            await self.store.add(account)
            logger.info("auth.account_created", account_id=str(account.id))
        else:
            account.otp_code = code
            account.otp_expires_at = expires_at
            account.password_hash = password_hash
            await self.store.save(account)

        logger.info(
            "auth.otp_issued",
            account_id=str(account.id),
            expires_at=expires_at.isoformat(),
        )

        # DeliveryError propagates with the code already persisted.
        await self.mailer.send_otp(account.email, code)
        return account

    async def verify(self, email: str, code: str) -> Account:
        """Check a submitted code and mark the account verified.

        Raises NotFoundError, ExpiredError or MismatchError.
        """
        if not email.strip() or not code:
            raise ValidationError("Missing fields")

        account = await self.store.get_by_email(email)
        if account is None:
            raise NotFoundError("User not found")

        now = self.clock()
        if not account.has_pending_otp or as_utc(account.otp_expires_at) <= now:
            raise ExpiredError()

        # Exact string comparison; no trimming or normalisation.
        if code != account.otp_code:
            logger.info("auth.otp_mismatch", account_id=str(account.id))
            raise MismatchError()

        if not await self.store.consume_otp(account.id, code, now):
            # Another request consumed or replaced this code first.
            raise ExpiredError()

        await self.store.db.refresh(account)
        logger.info("auth.otp_verified", account_id=str(account.id))
        return account
