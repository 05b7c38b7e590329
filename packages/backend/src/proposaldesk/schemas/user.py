"""Pydantic schemas for users.

None of the read schemas has a password_hash field, so credential data
can't be serialized even by accident.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserSummary(BaseModel):
    """Embedded in projects: who the student / supervisor is."""
    id: uuid.UUID
    name: str
    email: str

    model_config = {"from_attributes": True}


class UserRead(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    """Admin edit — only non-None fields are applied. No password here."""
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
