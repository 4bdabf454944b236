#!/usr/bin/env python3
"""
NoteVault Quickstart — sign up and walk a note through its lifecycle.

Signs up with an emailed code → creates notes → lists → edits → deletes.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:4000
"""

from _common import create_client


def main():
    client = create_client()

    # ── Who am I ─────────────────────────────────────────────────
    me = client.get("/auth/me").json()["data"]["user"]
    print(f"\n1. Signed in as {me['name']} <{me['email']}>")

    # ── Create notes ─────────────────────────────────────────────
    print("\n2. Creating notes...")
    created = []
    for title, body in [
        ("Groceries", "eggs, milk, bread"),
        ("Ideas", "a notes app with OTP signup"),
    ]:
        resp = client.post("/notes", json={"title": title, "body": body})
        assert resp.status_code == 201, f"Failed: {resp.text}"
        note = resp.json()["data"]["note"]
        created.append(note)
        print(f"   Note: {note['title']} ({note['id'][:8]}...)")

    # ── Title is required ────────────────────────────────────────
    resp = client.post("/notes", json={"title": "   "})
    print(f"   Blank title rejected: {resp.status_code} {resp.json()['message']}")

    # ── List (newest first) ──────────────────────────────────────
    print("\n3. Listing notes...")
    for note in client.get("/notes").json()["data"]["notes"]:
        print(f"   - {note['title']}")

    # ── Edit ─────────────────────────────────────────────────────
    print("\n4. Editing the first note...")
    groceries = created[0]
    resp = client.patch(f"/notes/{groceries['id']}", json={"body": "eggs, milk, bread, coffee"})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Body now: {resp.json()['data']['note']['body']}")

    # ── Delete ───────────────────────────────────────────────────
    print("\n5. Deleting notes...")
    for note in created:
        resp = client.delete(f"/notes/{note['id']}")
        assert resp.status_code == 200, f"Failed: {resp.text}"
        print(f"   Deleted {note['id'][:8]}...")

    resp = client.delete(f"/notes/{groceries['id']}")
    print(f"   Deleting again: {resp.status_code} {resp.json()['message']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
