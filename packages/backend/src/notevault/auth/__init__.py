"""Authentication and session handling.

Learn: Three ways in, one way to stay in:
1. Email + emailed one-time code (signup / password change)
2. Email + password (verified accounts only)
3. Google ID token (linked to the account with the same email)

Every successful path ends in a signed session token, carried in the
`token` cookie or an Authorization: Bearer header, and resolved back
to a CurrentIdentity by the auth gate for owner-scoped note access.
"""
