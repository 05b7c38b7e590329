"""User administration routes (admin only, except the supervisor roster).

/users/supervisors is what the proposal form uses to offer a supervisor
list to students; it must stay ahead of /users/{user_id}.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from proposaldesk.auth.dependencies import get_principal
from proposaldesk.auth.principal import Principal
from proposaldesk.db.engine import get_db
from proposaldesk.schemas.user import UserRead, UserUpdate
from proposaldesk.services.proposal_desk import ProposalDesk

router = APIRouter()


def _desk(db: AsyncSession = Depends(get_db)) -> ProposalDesk:
    return ProposalDesk(db)


@router.get("/users", response_model=list[UserRead])
async def list_users(
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    return await desk.list_users(principal)


@router.get("/users/supervisors", response_model=list[UserRead])
async def supervisors_roster(
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    """All supervisor accounts (students and admins)."""
    return await desk.supervisors_roster(principal)


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    return await desk.get_user(principal, user_id)


@router.put("/users/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    """Change name, email or role. Passwords can't be changed through this route."""
    return await desk.update_user(
        principal,
        user_id,
        name=body.name,
        email=body.email,
        role=body.role,
    )


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    desk: ProposalDesk = Depends(_desk),
):
    await desk.delete_user(principal, user_id)
    return {"deleted": True}
