"""Pydantic schemas for notes.

- NoteCreate: what you POST to create a note
- NoteUpdate: what you PATCH to modify a note (all optional)
- NoteRead: what the API returns
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from notevault.db.models import TITLE_MAX_LENGTH


class NoteCreate(BaseModel):
    title: str = Field(default="", max_length=TITLE_MAX_LENGTH)
    body: Optional[str] = None


class NoteUpdate(BaseModel):
    """Partial update — only non-None fields are applied."""
    title: Optional[str] = Field(None, max_length=TITLE_MAX_LENGTH)
    body: Optional[str] = None


class NoteRead(BaseModel):
    id: uuid.UUID
    title: str
    body: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotePayload(BaseModel):
    note: NoteRead


class NoteListPayload(BaseModel):
    notes: list[NoteRead]
