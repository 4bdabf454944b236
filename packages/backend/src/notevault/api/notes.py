"""Notes API — personal notes, scoped to the signed-in account.

Learn: The whole router sits behind the auth gate (see api/__init__.py),
and every handler passes identity.account_id down as owner_id. There is
no route that can reach another account's notes.

- GET    /notes       → list (newest first)
- POST   /notes       → create (title required)
- GET    /notes/:id   → one note
- PATCH  /notes/:id   → partial update
- DELETE /notes/:id   → delete
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.auth.dependencies import CurrentIdentity, get_current_user
from notevault.db.engine import get_db
from notevault.errors import NoteNotFoundError
from notevault.schemas.common import Envelope, OkPayload
from notevault.schemas.note import (
    NoteCreate,
    NoteListPayload,
    NotePayload,
    NoteRead,
    NoteUpdate,
)
from notevault.services.note_service import NoteService, parse_note_id

router = APIRouter(prefix="/notes")


def _note_svc(db: AsyncSession = Depends(get_db)) -> NoteService:
    return NoteService(db)


@router.get("", response_model=Envelope[NoteListPayload])
async def list_notes(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_note_svc),
):
    notes = await svc.list_by_owner(identity.account_id)
    return {"data": {"notes": [NoteRead.model_validate(n) for n in notes]}}


@router.post("", response_model=Envelope[NotePayload], status_code=201)
async def create_note(
    body: NoteCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_note_svc),
):
    note = await svc.create(identity.account_id, body.title, body.body)
    return {"data": {"note": NoteRead.model_validate(note)}}


@router.get("/{note_id}", response_model=Envelope[NotePayload])
async def get_note(
    note_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_note_svc),
):
    note = await svc.get(identity.account_id, parse_note_id(note_id))
    return {"data": {"note": NoteRead.model_validate(note)}}


@router.patch("/{note_id}", response_model=Envelope[NotePayload])
async def update_note(
    note_id: str,
    body: NoteUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_note_svc),
):
    note = await svc.update(
        identity.account_id, parse_note_id(note_id), title=body.title, body=body.body
    )
    return {"data": {"note": NoteRead.model_validate(note)}}


@router.delete("/{note_id}", response_model=Envelope[OkPayload])
async def delete_note(
    note_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_note_svc),
):
    deleted = await svc.delete_by_owner_and_id(
        identity.account_id, parse_note_id(note_id)
    )
    if not deleted:
        raise NoteNotFoundError()
    return {"data": {"ok": True}}
