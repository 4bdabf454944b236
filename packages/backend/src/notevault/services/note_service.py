"""Note service — owner-scoped CRUD for notes.

Learn: Every query filters on owner_id. A note that exists but belongs
to someone else is reported exactly like a note that does not exist,
so callers cannot probe other accounts' note ids.
"""

import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.db.models import Note
from notevault.errors import NoteNotFoundError, ValidationError


def parse_note_id(raw: str) -> uuid.UUID:
    """Parse a path id; malformed ids are just another missing note."""
    try:
        return uuid.UUID(raw)
    except (ValueError, AttributeError, TypeError):
        raise NoteNotFoundError()


class NoteService:
    """Business logic for personal notes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_by_owner(self, owner_id: uuid.UUID) -> list[Note]:
        result = await self.db.execute(
            select(Note)
            .where(Note.owner_id == owner_id)
            .order_by(Note.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, owner_id: uuid.UUID, note_id: uuid.UUID) -> Note:
        result = await self.db.execute(
            select(Note).where(Note.id == note_id, Note.owner_id == owner_id)
        )
        note = result.scalars().first()
        if note is None:
            raise NoteNotFoundError()
        return note

    async def create(
        self, owner_id: uuid.UUID, title: str, body: Optional[str] = None
    ) -> Note:
        if not title or not title.strip():
            raise ValidationError("Title required")

        note = Note(owner_id=owner_id, title=title.strip(), body=body or "")
        self.db.add(note)
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def update(
        self,
        owner_id: uuid.UUID,
        note_id: uuid.UUID,
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> Note:
        """Partial update — only non-None fields are applied."""
        note = await self.get(owner_id, note_id)
        if title is not None:
            if not title.strip():
                raise ValidationError("Title required")
            note.title = title.strip()
        if body is not None:
            note.body = body
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def delete_by_owner_and_id(
        self, owner_id: uuid.UUID, note_id: uuid.UUID
    ) -> bool:
        result = await self.db.execute(
            delete(Note).where(Note.id == note_id, Note.owner_id == owner_id)
        )
        await self.db.commit()
        return result.rowcount == 1
