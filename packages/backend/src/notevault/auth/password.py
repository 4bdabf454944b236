"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and its checkpw comparison is constant-structure, so
no timing hardening is reimplemented here. The work factor is fixed at
10 rounds unless a caller (tests) asks for cheaper hashes.

Accounts created through Google sign-in have no hash at all; verifying
against a missing hash is a plain "no", never an exception.
"""

from typing import Optional

import bcrypt

BCRYPT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of input.
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    Returns the "$2b$..." string form, which embeds salt and cost.
    The plaintext is never stored or logged.
    """
    pw_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a plaintext password against a stored hash.

    Returns False when the account has no password (Google-only) or the
    stored value is not a bcrypt hash.
    """
    if not password_hash:
        return False
    try:
        pw_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
