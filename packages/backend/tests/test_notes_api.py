"""Notes API tests — the auth gate and owner scoping.

Learn: Every request here carries its session explicitly (bearer header
or Cookie header) so two accounts can be driven from one client.
"""

import uuid

import pytest


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _create(client, token, title, body=None):
    r = await client.post("/api/notes", json={"title": title, "body": body}, headers=_auth(token))
    assert r.status_code == 201, r.text
    return r.json()["data"]["note"]


# ═══════════════════════════════════════════════════════════
# Auth gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_notes_require_session(client):
    r = await client.get("/api/notes")
    assert r.status_code == 401
    assert r.json() == {"message": "Unauthorized"}
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("POST", "/api/notes"),
        ("GET", f"/api/notes/{uuid.uuid4()}"),
        ("PATCH", f"/api/notes/{uuid.uuid4()}"),
        ("DELETE", f"/api/notes/{uuid.uuid4()}"),
    ],
)
async def test_every_note_route_is_gated(client, method, path):
    r = await client.request(method, path, json={"title": "x"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token_rejected(client):
    r = await client.get("/api/notes", headers=_auth("garbage"))
    assert r.status_code == 401
    assert r.json()["message"].startswith("Invalid token")


@pytest.mark.asyncio
async def test_cookie_session_accepted(client, sign_up):
    token = await sign_up("ada@example.com")
    r = await client.get("/api/notes", headers={"Cookie": f"token={token}"})
    assert r.status_code == 200
    assert r.json()["data"] == {"notes": []}


@pytest.mark.asyncio
async def test_cookie_wins_over_bearer(client, sign_up):
    ada = await sign_up("ada@example.com")
    bob = await sign_up("bob@example.com")
    await _create(client, ada, "ada's note")

    r = await client.get(
        "/api/notes",
        headers={"Cookie": f"token={ada}", "Authorization": f"Bearer {bob}"},
    )
    assert [n["title"] for n in r.json()["data"]["notes"]] == ["ada's note"]


# ═══════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_note(client, sign_up):
    token = await sign_up("ada@example.com")
    note = await _create(client, token, "  Groceries ", "eggs, milk")

    assert note["title"] == "Groceries"
    assert note["body"] == "eggs, milk"
    assert uuid.UUID(note["id"])
    assert note["created_at"] and note["updated_at"]


@pytest.mark.asyncio
async def test_create_note_body_defaults_empty(client, sign_up):
    token = await sign_up("ada@example.com")
    note = await _create(client, token, "Title only")
    assert note["body"] == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"title": ""}, {"title": "   "}])
async def test_create_note_requires_title(client, sign_up, payload):
    token = await sign_up("ada@example.com")
    r = await client.post("/api/notes", json=payload, headers=_auth(token))
    assert r.status_code == 400
    assert r.json() == {"message": "Title required"}


@pytest.mark.asyncio
async def test_list_newest_first(client, sign_up):
    token = await sign_up("ada@example.com")
    for title in ("first", "second", "third"):
        await _create(client, token, title)

    r = await client.get("/api/notes", headers=_auth(token))
    assert [n["title"] for n in r.json()["data"]["notes"]] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_get_note(client, sign_up):
    token = await sign_up("ada@example.com")
    note = await _create(client, token, "Groceries")

    r = await client.get(f"/api/notes/{note['id']}", headers=_auth(token))
    assert r.status_code == 200
    assert r.json()["data"]["note"]["title"] == "Groceries"


@pytest.mark.asyncio
async def test_update_note_partially(client, sign_up):
    token = await sign_up("ada@example.com")
    note = await _create(client, token, "Groceries", "eggs")

    r = await client.patch(f"/api/notes/{note['id']}", json={"body": "eggs, milk"}, headers=_auth(token))
    assert r.status_code == 200
    updated = r.json()["data"]["note"]
    assert updated["title"] == "Groceries"
    assert updated["body"] == "eggs, milk"


@pytest.mark.asyncio
async def test_update_note_rejects_blank_title(client, sign_up):
    token = await sign_up("ada@example.com")
    note = await _create(client, token, "Groceries")

    r = await client.patch(f"/api/notes/{note['id']}", json={"title": " "}, headers=_auth(token))
    assert r.status_code == 400
    assert r.json() == {"message": "Title required"}


@pytest.mark.asyncio
async def test_delete_note(client, sign_up):
    token = await sign_up("ada@example.com")
    note = await _create(client, token, "Groceries")

    r = await client.delete(f"/api/notes/{note['id']}", headers=_auth(token))
    assert r.status_code == 200
    assert r.json()["data"] == {"ok": True}

    r = await client.get("/api/notes", headers=_auth(token))
    assert r.json()["data"]["notes"] == []

    r = await client.delete(f"/api/notes/{note['id']}", headers=_auth(token))
    assert r.status_code == 404
    assert r.json() == {"message": "Not found"}


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "PATCH", "DELETE"])
async def test_malformed_note_id_is_not_found(client, sign_up, method):
    token = await sign_up("ada@example.com")
    r = await client.request(method, "/api/notes/not-a-uuid", json={"title": "x"}, headers=_auth(token))
    assert r.status_code == 404
    assert r.json() == {"message": "Not found"}


# ═══════════════════════════════════════════════════════════
# Owner isolation
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_notes_are_owner_scoped(client, sign_up):
    ada = await sign_up("ada@example.com")
    bob = await sign_up("bob@example.com")
    await _create(client, ada, "ada's note")
    await _create(client, bob, "bob's note")

    r = await client.get("/api/notes", headers=_auth(ada))
    assert [n["title"] for n in r.json()["data"]["notes"]] == ["ada's note"]


@pytest.mark.asyncio
async def test_cannot_touch_another_owners_note(client, sign_up):
    ada = await sign_up("ada@example.com")
    bob = await sign_up("bob@example.com")
    note = await _create(client, ada, "private")
    path = f"/api/notes/{note['id']}"

    assert (await client.get(path, headers=_auth(bob))).status_code == 404
    assert (await client.patch(path, json={"title": "pwned"}, headers=_auth(bob))).status_code == 404
    r = await client.delete(path, headers=_auth(bob))
    assert r.status_code == 404
    assert r.json() == {"message": "Not found"}

    r = await client.get(path, headers=_auth(ada))
    assert r.status_code == 200
    assert r.json()["data"]["note"]["title"] == "private"


# ═══════════════════════════════════════════════════════════
# Input bounds
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_note_rejects_over_length_title(client, sign_up):
    token = await sign_up("ada@example.com")
    r = await client.post("/api/notes", json={"title": "t" * 501}, headers=_auth(token))
    assert r.status_code == 400
    assert "message" in r.json()

    r = await client.get("/api/notes", headers=_auth(token))
    assert r.json()["data"]["notes"] == []


@pytest.mark.asyncio
async def test_create_note_accepts_title_at_column_width(client, sign_up):
    token = await sign_up("ada@example.com")
    note = await _create(client, token, "t" * 500)
    assert len(note["title"]) == 500


@pytest.mark.asyncio
async def test_update_note_rejects_over_length_title(client, sign_up):
    token = await sign_up("ada@example.com")
    note = await _create(client, token, "Groceries")

    r = await client.patch(f"/api/notes/{note['id']}", json={"title": "t" * 501}, headers=_auth(token))
    assert r.status_code == 400

    r = await client.get(f"/api/notes/{note['id']}", headers=_auth(token))
    assert r.json()["data"]["note"]["title"] == "Groceries"
