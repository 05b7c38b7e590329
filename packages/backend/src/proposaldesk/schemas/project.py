"""Pydantic schemas for projects and their history.

- ProjectCreate: what a student POSTs. Field bounds are enforced by the
  project store (after trimming), not here, so there is one source of truth
- ProjectUpdate: what a reviewer PUTs (status and/or feedback)
- ProjectRead: what the API returns, with student/supervisor summaries
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from proposaldesk.schemas.user import UserSummary


class ProjectCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    supervisor: Optional[uuid.UUID] = Field(None, description="Supervisor user id")


class ProjectUpdate(BaseModel):
    """Partial review update — only non-None fields are applied."""
    status: Optional[str] = None
    feedback: Optional[str] = None


class ProjectRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    status: str
    student_id: uuid.UUID
    supervisor_id: uuid.UUID
    student: Optional[UserSummary] = None
    supervisor: Optional[UserSummary] = None
    submission_date: datetime
    feedback: Optional[str] = None

    model_config = {"from_attributes": True}


class TitleCheck(BaseModel):
    title: str
    exists: bool


class EventRead(BaseModel):
    id: int
    type: str
    data: dict
    meta: dict
    created_at: datetime

    model_config = {"from_attributes": True}
