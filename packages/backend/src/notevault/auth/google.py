"""Google sign-in: ID token verification and account linking.

Learn: The browser hands us a Google ID token (an RS256 JWT). We check
it against Google's published signing keys (JWKS) with PyJWT, requiring
our client id as audience and Google as issuer. The verified email is
then the join key to local accounts:

- no account       → create one, verified, no password
- account, no link → attach the Google subject, mark verified; an
                     unverified account also takes the Google name and
                     loses its password and pending code, since none
                     of them was ever proven
- account, linked  → sign in as-is (a *different* subject is logged,
                     never silently overwritten)
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

import jwt
import structlog
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientError

from notevault.db.models import NAME_MAX_LENGTH, Account
from notevault.errors import InvalidTokenError
from notevault.services.account_store import AccountStore, normalize_email

logger = structlog.get_logger()

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ["accounts.google.com", "https://accounts.google.com"]


@dataclass(frozen=True)
class ExternalIdentity:
    """Verified identity claims from the provider."""

    subject: str
    email: str
    name: str


class IdentityVerifier(Protocol):
    async def verify_identity_token(self, token: str) -> ExternalIdentity:
        """Raises InvalidTokenError if the token cannot be trusted."""
        ...


class GoogleIdentityVerifier:
    """Verifies Google ID tokens against Google's JWKS endpoint."""

    def __init__(
        self,
        client_id: str,
        certs_url: str = GOOGLE_CERTS_URL,
        leeway: int = 60,
    ):
        self.client_id = client_id
        self.leeway = leeway
        # PyJWKClient caches fetched keys for the life of the process.
        self._jwks = PyJWKClient(certs_url)

    def _decode(self, token: str) -> dict:
        signing_key = self._jwks.get_signing_key_from_jwt(token).key
        return jwt.decode(
            token,
            signing_key,
            algorithms=["RS256"],
            audience=self.client_id,
            issuer=GOOGLE_ISSUERS,
            leeway=self.leeway,
            options={"require": ["sub", "email", "exp", "iat"]},
        )

    async def verify_identity_token(self, token: str) -> ExternalIdentity:
        if not self.client_id:
            raise InvalidTokenError("Google sign-in is not configured")
        if not token:
            raise InvalidTokenError("Missing identity token")

        try:
            payload = await asyncio.to_thread(self._decode, token)
        except PyJWKClientError as e:
            raise InvalidTokenError(f"Could not fetch Google signing keys: {e}")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid Google token: {e}")

        if payload.get("email_verified") is not True:
            raise InvalidTokenError("Google email is not verified")

        email = normalize_email(payload["email"])
        name = (payload.get("name") or email.split("@", 1)[0])[:NAME_MAX_LENGTH]
        return ExternalIdentity(subject=str(payload["sub"]), email=email, name=name)


class ExternalIdentityLinker:
    """Unifies a verified external identity with the local account for its email."""

    def __init__(self, store: AccountStore, verifier: IdentityVerifier):
        self.store = store
        self.verifier = verifier

    async def link_or_create(self, provider_token: str) -> Account:
        # InvalidTokenError from the verifier surfaces unchanged.
        identity = await self.verifier.verify_identity_token(provider_token)

        account: Optional[Account] = await self.store.get_by_email(identity.email)
        if account is None:
            account = Account(
                name=identity.name,
                email=identity.email,
                is_verified=True,
                external_id=identity.subject,
            )
            await self.store.add(account)
            logger.info("auth.google.account_created", account_id=str(account.id))
            return account

        if account.external_id is None:
            if not account.is_verified:
                # Nobody proved ownership of this password or pending code.
                account.password_hash = None
                account.otp_code = None
                account.otp_expires_at = None
                account.name = identity.name
            account.external_id = identity.subject
            account.is_verified = True
            await self.store.save(account)
            logger.info("auth.google.linked", account_id=str(account.id))
        elif account.external_id != identity.subject:
            logger.warning(
                "auth.google.subject_mismatch",
                account_id=str(account.id),
            )

        return account
