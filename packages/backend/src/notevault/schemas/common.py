"""Response envelope shared by every endpoint.

Learn: One canonical shape — {"data": ..., "message": ...} — so clients
never guess where the payload lives. Errors are the one exception:
they are a bare {"message": ...} produced by the exception handlers.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    data: T
    message: Optional[str] = None


class OkPayload(BaseModel):
    ok: bool = True


class ErrorBody(BaseModel):
    message: str
