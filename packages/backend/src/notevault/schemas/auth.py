"""Pydantic schemas for the auth endpoints.

Learn: Request fields default to "" instead of being required, so a
missing field reaches the service layer and fails with the same
ValidationError message as an empty one. Length bounds mirror the
column widths so over-long input is a 400, never a database error.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from notevault.db.models import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH


class RequestOtpBody(BaseModel):
    name: str = Field(default="", max_length=NAME_MAX_LENGTH)
    email: str = Field(default="", max_length=EMAIL_MAX_LENGTH)
    password: str = ""


class VerifyOtpBody(BaseModel):
    email: str = Field(default="", max_length=EMAIL_MAX_LENGTH)
    otp: str = ""


class LoginBody(BaseModel):
    email: str = Field(default="", max_length=EMAIL_MAX_LENGTH)
    password: str = ""


class GoogleSignInBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id_token: str = Field(default="", alias="idToken")


class UserRead(BaseModel):
    """Public view of an account — never includes hashes or OTP state."""

    id: uuid.UUID
    email: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class UserPayload(BaseModel):
    user: Optional[UserRead] = None
