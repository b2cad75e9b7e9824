from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ContactRequest(BaseModel):
    """Raw contact form input.

    Every field is optional here: presence, captcha and email checks run in
    a fixed order inside the service so the first failing rule decides the
    error message.
    """

    # numbers arrive as text, so a JSON 0 counts as a present "0"
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    type_the_word: Optional[str] = None


class ValidatedSubmission(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str


class StoredSubmission(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str
    created_at: datetime


class ContactResponse(BaseModel):
    success: bool
    message: str
    data: StoredSubmission


class ErrorResponse(BaseModel):
    error: str
