"""ProposalDesk — the gated operations the HTTP layer calls into.

Every operation follows the same three steps, in order:
1. principal  — already resolved by CredentialVerifier (authenticate())
2. authorize  — AuthorizationGuard against the permission matrix,
                loading the target project when the check needs ownership
3. store      — ProjectService / UserService do the actual read or write

Nothing here talks HTTP; routes translate requests into these calls and
ProposalDeskError subclasses into status codes.
"""

import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from proposaldesk.auth.principal import Principal
from proposaldesk.auth.verifier import CredentialVerifier
from proposaldesk.authz.guard import AuthorizationGuard, project_list_filter
from proposaldesk.authz.policy import Operation
from proposaldesk.db.models import Event, Project, ProjectStatus, Role, User
from proposaldesk.errors import ValidationError
from proposaldesk.services.project_service import ProjectDraft, ProjectService
from proposaldesk.services.user_service import UserService


class ProposalDesk:
    """Access-controlled project and user operations for one request."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)
        self.projects = ProjectService(db)
        self.guard = AuthorizationGuard(self.projects)
        self.verifier = CredentialVerifier(self.users)

    async def authenticate(self, token: Optional[str]) -> Principal:
        return await self.verifier.authenticate(token)

    # ─── Projects ────────────────────────────────────────

    async def create_project(self, principal: Principal, draft: ProjectDraft) -> Project:
        """Submit a proposal. The caller becomes its student."""
        self.guard.check(principal, Operation.CREATE_PROJECT)
        return await self.projects.create(draft, author_id=principal.id)

    async def check_title(self, principal: Principal, title: Optional[str]) -> bool:
        """Return True if a project with this title (after normalization) exists."""
        self.guard.check(principal, Operation.CHECK_TITLE)
        if not (title or "").strip():
            raise ValidationError("Title is required")
        return await self.projects.find_by_title(title) is not None

    async def list_projects(self, principal: Principal) -> list[Project]:
        return await self.projects.list_projects(**project_list_filter(principal))

    async def get_project(self, principal: Principal, project_id: uuid.UUID) -> Project:
        return await self.guard.project(principal, Operation.READ_PROJECT, project_id)

    async def project_history(
        self, principal: Principal, project_id: uuid.UUID
    ) -> list[Event]:
        await self.guard.project(principal, Operation.READ_PROJECT, project_id)
        return await self.projects.history(project_id)

    async def update_project(
        self,
        principal: Principal,
        project_id: uuid.UUID,
        status: Optional[ProjectStatus | str] = None,
        feedback: Optional[str] = None,
    ) -> Project:
        await self.guard.project(principal, Operation.UPDATE_PROJECT, project_id)
        return await self.projects.update_status_and_feedback(
            project_id, status=status, feedback=feedback, actor_id=principal.id
        )

    async def delete_project(self, principal: Principal, project_id: uuid.UUID) -> None:
        await self.guard.project(principal, Operation.DELETE_PROJECT, project_id)
        await self.projects.delete(project_id, actor_id=principal.id)

    # ─── Users ───────────────────────────────────────────

    async def supervisors_roster(self, principal: Principal) -> list[User]:
        self.guard.check(principal, Operation.SUPERVISOR_ROSTER)
        return await self.users.list_supervisors()

    async def list_users(self, principal: Principal) -> list[User]:
        self.guard.check(principal, Operation.LIST_USERS)
        return await self.users.list_users()

    async def get_user(self, principal: Principal, user_id: uuid.UUID) -> User:
        self.guard.check(principal, Operation.READ_USER)
        return await self.users.get(user_id)

    async def update_user(
        self,
        principal: Principal,
        user_id: uuid.UUID,
        name: Optional[str] = None,
        email: Optional[str] = None,
        role: Optional[Role | str] = None,
    ) -> User:
        self.guard.check(principal, Operation.UPDATE_USER)
        return await self.users.update_user(
            user_id, name=name, email=email, role=role, actor_id=principal.id
        )

    async def delete_user(self, principal: Principal, user_id: uuid.UUID) -> None:
        self.guard.check(principal, Operation.DELETE_USER)
        await self.users.delete_user(user_id, actor_id=principal.id)
