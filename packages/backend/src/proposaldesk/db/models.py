"""SQLAlchemy ORM models — single source of truth for the database schema.

Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations mirror these models.

Key points:
- UUID primary keys via the portable Uuid type (native UUID on PostgreSQL)
- Project.title_key holds the normalized title under a UNIQUE constraint;
  that constraint is what makes title uniqueness hold across processes
- Project.student_id / supervisor_id are plain UUID columns, not foreign
  keys: references are validated once at creation and never cascade
- Timestamps are set Python-side so they are available right after flush
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Role(str, enum.Enum):
    STUDENT = "student"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"


class ProjectStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


# Field bounds shared by the store and the schemas
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
FEEDBACK_MAX_LENGTH = 500
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255


# ══════════════════════════════════════════════════════════════
# Identity
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A person using the system: student, supervisor or admin.

    Email is stored normalized (trimmed, lower-cased) so the UNIQUE
    constraint gives case-insensitive uniqueness.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    email: Mapped[str] = mapped_column(
        String(EMAIL_MAX_LENGTH), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Role.STUDENT.value
    )  # student, supervisor, admin
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Projects
# ══════════════════════════════════════════════════════════════


class Project(Base):
    """A project proposal submitted by a student to a supervisor.

    Only status and feedback change after creation. The student and
    supervisor relationships are view-only lookups; a deleted user simply
    resolves to None.
    """

    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_student", "student_id"),
        Index("idx_projects_supervisor", "supervisor_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    # case-folding can lengthen a string, hence the wider column
    title_key: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH * 4), unique=True, nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProjectStatus.SUBMITTED.value
    )  # submitted, approved, rejected
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    supervisor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    submission_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    feedback: Mapped[Optional[str]] = mapped_column(
        String(FEEDBACK_MAX_LENGTH), nullable=True
    )

    # Relationships (view-only, no FK constraint)
    student: Mapped[Optional["User"]] = relationship(
        primaryjoin="foreign(Project.student_id) == User.id",
        viewonly=True,
    )
    supervisor: Mapped[Optional["User"]] = relationship(
        primaryjoin="foreign(Project.supervisor_id) == User.id",
        viewonly=True,
    )


# ══════════════════════════════════════════════════════════════
# Audit trail
# ══════════════════════════════════════════════════════════════


class Event(Base):
    """Append-only audit log of lifecycle changes.

    stream_id examples: "project:<uuid>", "user:<uuid>"
    type examples: "project.created", "project.status_changed"
    """

    __tablename__ = "events"
    __table_args__ = (
        Index("idx_events_stream", "stream_id", "id"),
        Index("idx_events_type", "type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stream_id: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    meta: Mapped[dict] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )  # actor_id
    # Python attr is "meta" because "metadata" is reserved by SQLAlchemy.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
