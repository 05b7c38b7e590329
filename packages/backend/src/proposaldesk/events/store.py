"""Event store — append-only audit log.

Every lifecycle change to a project or user is recorded as an immutable
event next to the change itself, in the same transaction. The projects
and users tables stay the source of truth; the log answers "who changed
what, when" (see GET /projects/{id}/history).

Streams are named "<kind>:<uuid>", one per project and one per user.
Deleting a record leaves its stream in place, but the history route only
serves projects that still exist, so a deleted project's events are
reachable from the store alone.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from proposaldesk.db.models import Event


def project_stream(project_id: uuid.UUID) -> str:
    return f"project:{project_id}"


def user_stream(user_id: uuid.UUID) -> str:
    return f"user:{user_id}"


class EventStore:
    """Appends and reads audit events through the caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        stream_id: str,
        event_type: str,
        data: dict,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Event:
        """Record an event. Flushed, not committed: it lands with the caller's commit."""
        event = Event(
            stream_id=stream_id,
            type=event_type,
            data=data,
            meta={"actor_id": str(actor_id)} if actor_id else {},
        )
        self.db.add(event)
        await self.db.flush()
        return event

    async def read_stream(self, stream_id: str, limit: int = 500) -> list[Event]:
        """A stream's events, oldest first."""
        result = await self.db.execute(
            select(Event)
            .where(Event.stream_id == stream_id)
            .order_by(Event.id)
            .limit(limit)
        )
        return list(result.scalars().all())
