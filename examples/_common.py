"""
Shared helpers for NoteVault examples.

Handles the health check and the OTP signup dance (request a code,
read it from the terminal, verify) so each example can focus on its
own workflow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:4000/api"


def check_backend() -> None:
    """Verify the backend is reachable and its database answers."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  notevault serve --reload")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Status:   {health['status']}")
    print(f"  Database: {health['database']}")

    if health["database"] != "ok":
        print("\nERROR: Database is not reachable. Check NOTEVAULT_DATABASE_URL.")
        sys.exit(1)


def _fail(step: str, resp: httpx.Response) -> None:
    message = resp.json().get("message", resp.text)
    print(f"ERROR: {step} failed: {resp.status_code} {message}")
    sys.exit(1)


def authenticate(email: str | None = None, password: str = "demo-password-123") -> str:
    """Sign up (or re-verify) an account and return its session token.

    The code arrives by email; with SMTP disabled the backend logs it
    as a mailer.disabled warning instead. Either way it is typed in here.
    """
    run_id = uuid.uuid4().hex[:8]
    email = email or f"demo-{run_id}@example.com"

    resp = httpx.post(
        f"{BASE}/auth/request-otp",
        json={"name": f"Demo User {run_id}", "email": email, "password": password},
        timeout=10,
    )
    if resp.status_code != 200:
        _fail("Requesting a code", resp)
    print(f"  Code sent to {email}")

    code = input("  Enter the 6-digit code: ").strip()
    resp = httpx.post(
        f"{BASE}/auth/verify-otp",
        json={"email": email, "otp": code},
        timeout=10,
    )
    if resp.status_code != 200:
        _fail("Verification", resp)

    return resp.cookies["token"]


def create_client() -> httpx.Client:
    """Check backend, authenticate, and return an httpx Client with auth headers."""
    check_backend()
    token = authenticate()
    print("  Auth:     ✓ (session token)")
    return httpx.Client(
        base_url=BASE,
        timeout=10,
        headers={"Authorization": f"Bearer {token}"},
    )
