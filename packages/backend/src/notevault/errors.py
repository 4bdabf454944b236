"""Error taxonomy shared by the auth core, the note store and the API.

Learn: Services raise these instead of HTTPException so they stay
usable outside FastAPI (CLI, tests). Each error carries the HTTP
status it maps to; main.py registers one handler that turns any
NoteVaultError into a JSON {message} body.
"""

from typing import Optional


class NoteVaultError(Exception):
    """Base class for every expected, client-visible failure."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(
        self,
        message: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


# ─── 400: client must correct its input ─────────────────


class ValidationError(NoteVaultError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(NoteVaultError):
    status_code = 400
    default_message = "User not found"


class InvalidCredentialsError(NoteVaultError):
    status_code = 400
    default_message = "Invalid credentials"


class UnverifiedError(NoteVaultError):
    status_code = 400
    default_message = "Please verify your email"


class ExpiredError(NoteVaultError):
    """No OTP pending, or the pending one is past its expiry."""

    status_code = 400
    default_message = "OTP expired or not requested"


class MismatchError(NoteVaultError):
    status_code = 400
    default_message = "Invalid OTP"


# ─── 401: caller must re-authenticate ───────────────────


class InvalidTokenError(NoteVaultError):
    """Session or identity token failed signature/structure/expiry checks."""

    status_code = 401
    default_message = "Invalid token"


class UnauthorizedError(NoteVaultError):
    status_code = 401
    default_message = "Unauthorized"


# ─── 404: owner-scoped resource missing ─────────────────


class NoteNotFoundError(NotFoundError):
    """Missing note, or a note owned by someone else (indistinguishable)."""

    status_code = 404
    default_message = "Not found"


# ─── 500: server-side dependency failure ────────────────


class DeliveryError(NoteVaultError):
    """Mail delivery failed. The operation's primary effect may already be persisted."""

    status_code = 500
    default_message = "OTP generated but email sending failed"


class ServerError(NoteVaultError):
    status_code = 500
    default_message = "Server error"
