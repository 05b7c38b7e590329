"""Project service — the project store: lifecycle and title uniqueness.

Two invariants live here:

1. Title uniqueness. Titles are compared after normalize_title()
   (trim + case-fold). The SAME function feeds the create-time check, the
   availability probe and the title_key column, so none of them can
   disagree. Create is a conditional insert keyed by title_key:
     - an asyncio.Lock per normalized title serializes probe + insert +
       commit inside this process
     - the UNIQUE constraint on title_key catches everything else
       (other workers); IntegrityError becomes DuplicateTitle

2. The status state machine:
     submitted ⇄ approved ⇄ rejected ⇄ submitted
   Every project starts in 'submitted'. There is no terminal state and
   no transition-order restriction: a reviewer may always reconsider.
   Only status and feedback ever change after creation.
"""

import asyncio
import uuid
import weakref
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from proposaldesk.db.engine import storage_call
from proposaldesk.db.models import (
    DESCRIPTION_MAX_LENGTH,
    FEEDBACK_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Event,
    Project,
    ProjectStatus,
    Role,
    User,
)
from proposaldesk.errors import DuplicateTitle, NotFound, ValidationError
from proposaldesk.events.store import EventStore, project_stream
from proposaldesk.events.types import (
    PROJECT_CREATED,
    PROJECT_DELETED,
    PROJECT_FEEDBACK_UPDATED,
    PROJECT_STATUS_CHANGED,
)

logger = structlog.get_logger()


def normalize_title(title: str) -> str:
    """The one normalization used for every title comparison."""
    return title.strip().casefold()


def parse_status(value: ProjectStatus | str) -> ProjectStatus:
    try:
        return ProjectStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ProjectStatus)
        raise ValidationError(f"Status must be one of: {allowed}")


@dataclass(frozen=True)
class ProjectDraft:
    """What a student submits. Everything else is stamped by the store."""

    title: Optional[str]
    description: Optional[str]
    supervisor_id: Optional[uuid.UUID]


def validate_draft(draft: ProjectDraft) -> tuple[str, str]:
    """Check required fields and length bounds. Returns (trimmed title, description)."""
    title = (draft.title or "").strip()
    description = draft.description or ""
    if not title or not description.strip() or draft.supervisor_id is None:
        raise ValidationError("Please provide title, description and supervisor")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot be more than {TITLE_MAX_LENGTH} characters")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description cannot be more than {DESCRIPTION_MAX_LENGTH} characters"
        )
    return title, description


# Locks are dropped automatically once no create holds them.
_title_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
    weakref.WeakValueDictionary()
)


@asynccontextmanager
async def _title_lock(title_key: str):
    lock = _title_locks.get(title_key)
    if lock is None:
        lock = asyncio.Lock()
        _title_locks[title_key] = lock
    async with lock:
        yield


class ProjectService:
    """Project CRUD and state management. No access checks — see ProposalDesk."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.events = EventStore(db)

    # ─── Read ────────────────────────────────────────────

    def _select(self):
        return select(Project).options(
            joinedload(Project.student),
            joinedload(Project.supervisor),
        )

    async def find(self, project_id: uuid.UUID) -> Optional[Project]:
        """Load a project with its student/supervisor summaries, or None."""
        async with storage_call("project.find"):
            result = await self.db.execute(
                self._select()
                .where(Project.id == project_id)
                .execution_options(populate_existing=True)
            )
            return result.scalars().first()

    async def get(self, project_id: uuid.UUID) -> Project:
        project = await self.find(project_id)
        if project is None:
            raise NotFound("Project not found")
        return project

    async def find_by_title(self, title: str) -> Optional[Project]:
        """Uniqueness probe. Accepts raw or already-normalized titles."""
        async with storage_call("project.find_by_title"):
            result = await self.db.execute(
                select(Project).where(Project.title_key == normalize_title(title))
            )
            return result.scalars().first()

    async def list_projects(
        self,
        student_id: Optional[uuid.UUID] = None,
        supervisor_id: Optional[uuid.UUID] = None,
    ) -> list[Project]:
        """List projects, newest submission first, optionally filtered by owner."""
        query = self._select().order_by(Project.submission_date.desc())
        if student_id is not None:
            query = query.where(Project.student_id == student_id)
        if supervisor_id is not None:
            query = query.where(Project.supervisor_id == supervisor_id)

        async with storage_call("project.list"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def history(self, project_id: uuid.UUID) -> list[Event]:
        async with storage_call("project.history"):
            return await self.events.read_stream(project_stream(project_id))

    # ─── Create ──────────────────────────────────────────

    async def create(self, draft: ProjectDraft, author_id: uuid.UUID) -> Project:
        """Create a project in 'submitted' status, authored by author_id.

        Raises:
            ValidationError: missing/over-length fields, or references that
                don't resolve to a student / supervisor
            DuplicateTitle: a project with the same normalized title exists
        """
        title, description = validate_draft(draft)
        title_key = normalize_title(title)

        async with _title_lock(title_key):
            await self._require_role(author_id, Role.STUDENT)
            await self._require_role(draft.supervisor_id, Role.SUPERVISOR)

            if await self.find_by_title(title_key) is not None:
                logger.info("project.duplicate_title", title=title)
                raise DuplicateTitle()

            project = Project(
                title=title,
                title_key=title_key,
                description=description,
                status=ProjectStatus.SUBMITTED.value,
                student_id=author_id,
                supervisor_id=draft.supervisor_id,
            )
            async with storage_call("project.create"):
                self.db.add(project)
                try:
                    await self.db.flush()
                except IntegrityError:
                    # Lost the race to another process
                    await self.db.rollback()
                    logger.info("project.duplicate_title", title=title)
                    raise DuplicateTitle()

                await self.events.append(
                    stream_id=project_stream(project.id),
                    event_type=PROJECT_CREATED,
                    data={
                        "title": title,
                        "student_id": str(author_id),
                        "supervisor_id": str(draft.supervisor_id),
                    },
                    actor_id=author_id,
                )
                await self.db.commit()

        logger.info(
            "project.created",
            project_id=str(project.id),
            student_id=str(author_id),
            supervisor_id=str(draft.supervisor_id),
        )
        return await self.get(project.id)

    async def _require_role(self, user_id: uuid.UUID, role: Role) -> None:
        async with storage_call("project.resolve_reference"):
            user = await self.db.get(User, user_id)
        if user is None or user.role != role.value:
            raise ValidationError(f"{role.value.capitalize()} must be an existing {role.value}")

    # ─── Review (status + feedback) ──────────────────────

    async def update_status_and_feedback(
        self,
        project_id: uuid.UUID,
        status: Optional[ProjectStatus | str] = None,
        feedback: Optional[str] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Project:
        """Apply a review. Absent (None) fields are left unchanged.

        Any status may move to any other. An empty feedback string clears
        the feedback. Events are only recorded for values that actually
        changed, so repeating an update is a no-op.
        """
        project = await self.get(project_id)

        new_status = parse_status(status) if status is not None else None
        if feedback is not None and len(feedback) > FEEDBACK_MAX_LENGTH:
            raise ValidationError(
                f"Feedback cannot be more than {FEEDBACK_MAX_LENGTH} characters"
            )

        async with storage_call("project.update"):
            if new_status is not None and new_status.value != project.status:
                old_status = project.status
                project.status = new_status.value
                await self.events.append(
                    stream_id=project_stream(project.id),
                    event_type=PROJECT_STATUS_CHANGED,
                    data={"from": old_status, "to": new_status.value},
                    actor_id=actor_id,
                )
                logger.info(
                    "project.status_changed",
                    project_id=str(project.id),
                    old_status=old_status,
                    new_status=new_status.value,
                )
            if feedback is not None and (feedback or None) != project.feedback:
                project.feedback = feedback or None
                await self.events.append(
                    stream_id=project_stream(project.id),
                    event_type=PROJECT_FEEDBACK_UPDATED,
                    data={"feedback": project.feedback},
                    actor_id=actor_id,
                )
            await self.db.commit()

        return await self.get(project_id)

    # ─── Delete ──────────────────────────────────────────

    async def delete(
        self, project_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None
    ) -> None:
        """Remove the project record. Nothing else references it."""
        project = await self.get(project_id)
        async with storage_call("project.delete"):
            await self.db.delete(project)
            await self.events.append(
                stream_id=project_stream(project_id),
                event_type=PROJECT_DELETED,
                data={"title": project.title},
                actor_id=actor_id,
            )
            await self.db.commit()
        logger.info("project.deleted", project_id=str(project_id))
