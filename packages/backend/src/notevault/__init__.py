"""NoteVault — personal notes behind OTP, password and Google sign-in.

The interesting part is the authentication subsystem: one-time codes
for email verification, bcrypt credentials, Google identity linking
and stateless session tokens. Notes are a plain owner-scoped store.
"""

__version__ = "0.1.0"
