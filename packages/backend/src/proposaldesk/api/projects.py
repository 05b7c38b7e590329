"""Project API routes.

Thin HTTP wrapper over ProposalDesk: every handler resolves the
principal, makes exactly one desk call, and returns the result. Access
decisions, validation and uniqueness all happen in the core; core
errors are rendered by the handler in api/errors.py.

Note the route order: /projects/check-title must be declared before
/projects/{project_id}.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from proposaldesk.auth.dependencies import get_principal
from proposaldesk.auth.principal import Principal
from proposaldesk.db.engine import get_db
from proposaldesk.schemas.project import (
    EventRead,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    TitleCheck,
)
from proposaldesk.services.project_service import ProjectDraft
from proposaldesk.services.proposal_desk import ProposalDesk

router = APIRouter()


def _desk(db: AsyncSession = Depends(get_db)) -> ProposalDesk:
    return ProposalDesk(db)


@router.get("/projects/check-title", response_model=TitleCheck)
async def check_title(
    title: Optional[str] = Query(None, description="Title to probe"),
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    """Pre-flight duplicate probe, same normalization as create."""
    exists = await desk.check_title(principal, title)
    return TitleCheck(title=title.strip(), exists=exists)


@router.post("/projects", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    """Submit a new project proposal (students only)."""
    draft = ProjectDraft(
        title=body.title,
        description=body.description,
        supervisor_id=body.supervisor,
    )
    return await desk.create_project(principal, draft)


@router.get("/projects", response_model=list[ProjectRead])
async def list_projects(
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    """Students see their own, supervisors their assigned, admins everything."""
    return await desk.list_projects(principal)


@router.get("/projects/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    return await desk.get_project(principal, project_id)


@router.get("/projects/{project_id}/history", response_model=list[EventRead])
async def project_history(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    """Audit trail for one project (same access as reading it)."""
    return await desk.project_history(principal, project_id)


@router.put("/projects/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    """Review a project: set status and/or feedback (assigned supervisor or admin)."""
    return await desk.update_project(
        principal,
        project_id,
        status=body.status,
        feedback=body.feedback,
    )


@router.delete("/projects/{project_id}")
async def delete_project(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    await desk.delete_project(principal, project_id)
    return {"deleted": True}
