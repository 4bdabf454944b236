"""NoteVault CLI — run the server, and sign in / manage notes from a terminal.

Usage:
    notevault serve                                   # Run the API with uvicorn
    notevault init-db                                 # Create tables (dev / SQLite)
    notevault signup "Ada" ada@example.com            # Email yourself a code
    notevault verify ada@example.com 123456           # Verify → prints a session token
    notevault login ada@example.com                   # Password login → session token
    notevault me                                      # Who am I?
    notevault notes                                   # List notes
    notevault add "Groceries" --body "eggs, milk"     # Create a note
    notevault edit <id> --title "Shopping"            # Update a note
    notevault rm <id>                                 # Delete a note

Authenticated commands read the token from --token or NOTEVAULT_TOKEN and
send it as Authorization: Bearer, the non-browser path of the auth gate.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from notevault import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:4000"


def _api_url() -> str:
    return os.environ.get("NOTEVAULT_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the NoteVault backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, headers=headers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when an event loop is already running (tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    tok = token or os.environ.get("NOTEVAULT_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set NOTEVAULT_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _data(r: httpx.Response) -> dict:
    """Unwrap the {data, message} envelope, exiting on an error response."""
    try:
        body = r.json()
    except ValueError:
        body = {}
    if r.status_code >= 400:
        click.secho(f"Error ({r.status_code}): {body.get('message', r.text)}", fg="red", err=True)
        sys.exit(1)
    if body.get("message"):
        click.secho(body["message"], fg="green")
    return body.get("data") or {}


def _print_session(data: dict, r: httpx.Response) -> None:
    user = data.get("user") or {}
    click.echo(f"Signed in as {user.get('name')} <{user.get('email')}>")
    token = r.cookies.get("token")
    if token:
        click.echo()
        click.echo("Session token (valid 7 days):")
        click.echo(token)
        click.echo()
        click.echo("  export NOTEVAULT_TOKEN=<token>")


def _print_notes(notes: list[dict]) -> None:
    if not notes:
        click.echo("No notes yet.")
        return
    click.secho(f"{'ID':36s}  {'Created':19s}  Title", bold=True)
    click.echo("-" * 80)
    for n in notes:
        created = str(n.get("created_at", ""))[:19]
        click.echo(f"{n['id']:36s}  {created:19s}  {n['title'][:40]}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="notevault")
def main():
    """NoteVault — personal notes behind OTP, password and Google sign-in."""


# ---------------------------------------------------------------------------
# Server-side commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: NOTEVAULT_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: NOTEVAULT_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from notevault.config import settings

    uvicorn.run(
        "notevault.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create all tables directly from the models (no migrations)."""
    _run(_init_db_impl())


async def _init_db_impl():
    from notevault.db.engine import engine
    from notevault.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    click.secho("Tables created.", fg="green")


# ---------------------------------------------------------------------------
# Account commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("name")
@click.argument("email")
@click.password_option()
def signup(name: str, email: str, password: str):
    """Request a one-time code for NAME / EMAIL (also sets the password)."""
    _run(_signup_impl(name, email, password))


async def _signup_impl(name: str, email: str, password: str):
    async with _client() as c:
        r = await c.post(
            "/api/auth/request-otp",
            json={"name": name, "email": email, "password": password},
        )
        _data(r)
    click.echo(f"Check {email} for your code, then run: notevault verify {email} <code>")


@main.command()
@click.argument("email")
@click.argument("otp")
def verify(email: str, otp: str):
    """Verify EMAIL with the emailed OTP and print a session token."""
    _run(_verify_impl(email, otp))


async def _verify_impl(email: str, otp: str):
    async with _client() as c:
        r = await c.post("/api/auth/verify-otp", json={"email": email, "otp": otp})
        _print_session(_data(r), r)


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in with EMAIL and password and print a session token."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        r = await c.post("/api/auth/login", json={"email": email, "password": password})
        _print_session(_data(r), r)


@main.command()
@click.option("--token", help="Session token (or set NOTEVAULT_TOKEN)")
def me(token: Optional[str]):
    """Show the signed-in account."""
    _run(_me_impl(_require_token(token)))


async def _me_impl(token: str):
    async with _client(token) as c:
        r = await c.get("/api/auth/me")
        user = _data(r).get("user")
    if user is None:
        click.secho("Not signed in (token missing, invalid or expired).", fg="yellow")
        sys.exit(1)
    click.echo(json.dumps(user, indent=2))


# ---------------------------------------------------------------------------
# Note commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="Session token (or set NOTEVAULT_TOKEN)")
def notes(token: Optional[str]):
    """List your notes, newest first."""
    _run(_notes_impl(_require_token(token)))


async def _notes_impl(token: str):
    async with _client(token) as c:
        r = await c.get("/api/notes")
        _print_notes(_data(r).get("notes", []))


@main.command()
@click.argument("title")
@click.option("--body", "-b", default=None, help="Note body")
@click.option("--token", help="Session token (or set NOTEVAULT_TOKEN)")
def add(title: str, body: Optional[str], token: Optional[str]):
    """Create a note titled TITLE."""
    _run(_add_impl(_require_token(token), title, body))


async def _add_impl(token: str, title: str, body: Optional[str]):
    async with _client(token) as c:
        r = await c.post("/api/notes", json={"title": title, "body": body})
        note = _data(r)["note"]
    click.echo(f"Created note {note['id']}")


@main.command()
@click.argument("note_id")
@click.option("--title", "-t", default=None, help="New title")
@click.option("--body", "-b", default=None, help="New body")
@click.option("--token", help="Session token (or set NOTEVAULT_TOKEN)")
def edit(note_id: str, title: Optional[str], body: Optional[str], token: Optional[str]):
    """Update NOTE_ID's title and/or body."""
    if title is None and body is None:
        click.secho("Nothing to change: pass --title and/or --body", fg="yellow", err=True)
        sys.exit(1)
    _run(_edit_impl(_require_token(token), note_id, title, body))


async def _edit_impl(token: str, note_id: str, title: Optional[str], body: Optional[str]):
    payload = {k: v for k, v in (("title", title), ("body", body)) if v is not None}
    async with _client(token) as c:
        r = await c.patch(f"/api/notes/{note_id}", json=payload)
        note = _data(r)["note"]
    click.echo(f"Updated note {note['id']}")


@main.command()
@click.argument("note_id")
@click.option("--token", help="Session token (or set NOTEVAULT_TOKEN)")
def rm(note_id: str, token: Optional[str]):
    """Delete NOTE_ID."""
    _run(_rm_impl(_require_token(token), note_id))


async def _rm_impl(token: str, note_id: str):
    async with _client(token) as c:
        r = await c.delete(f"/api/notes/{note_id}")
        _data(r)
    click.echo(f"Deleted note {note_id}")


if __name__ == "__main__":
    main()
