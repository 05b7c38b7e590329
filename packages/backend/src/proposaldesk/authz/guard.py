"""Authorization guard — one entry point for every access decision.

authorize(principal, operation, target) consults PERMISSIONS and returns
a Decision (allow, or deny with the error to raise). It is pure: no I/O,
no storage, testable with in-memory fixtures.

Missing targets and existence leaks:
    For record-scoped operations the caller passes the loaded project, or
    None when the id doesn't exist. NotFound is only revealed to roles
    whose rule is unconditional (admin). A student or supervisor asking
    for a missing id gets Forbidden — exactly what they would get for
    someone else's project — so probing ids tells them nothing.

AuthorizationGuard wraps authorize() with the project lookup that
ownership checks need.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog

from proposaldesk.auth.principal import Principal
from proposaldesk.authz.policy import (
    PERMISSIONS,
    PROJECT_LIST_SCOPE,
    Operation,
    OwnedRecord,
    anyone,
)
from proposaldesk.db.models import Project
from proposaldesk.errors import Forbidden, NotFound, ProposalDeskError
from proposaldesk.services.project_service import ProjectService

logger = structlog.get_logger()


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[ProposalDeskError] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: ProposalDeskError) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise self.reason


def authorize(
    principal: Principal,
    operation: Operation,
    target: Optional[OwnedRecord] = None,
) -> Decision:
    """Decide whether principal may perform operation (on target)."""
    rule = PERMISSIONS[operation]
    predicate = rule.roles.get(principal.role)

    if predicate is None:
        decision = Decision.deny(Forbidden())
    elif not rule.record_scoped:
        decision = Decision.allow()
    elif target is None:
        if predicate is anyone:
            decision = Decision.deny(NotFound("Project not found"))
        else:
            decision = Decision.deny(Forbidden())
    elif predicate(principal, target):
        decision = Decision.allow()
    else:
        decision = Decision.deny(Forbidden())

    if not decision.allowed:
        logger.warning(
            "authz.denied",
            principal_id=str(principal.id),
            role=principal.role.value,
            operation=operation.value,
            reason=decision.reason.code,
        )
    return decision


def project_list_filter(principal: Principal) -> dict[str, uuid.UUID]:
    """Owner filter for list-projects: {} for admin, else the principal's own column."""
    authorize(principal, Operation.LIST_PROJECTS).raise_if_denied()
    column = PROJECT_LIST_SCOPE[principal.role]
    return {column: principal.id} if column else {}


class AuthorizationGuard:
    """authorize() plus the project lookups ownership checks depend on."""

    def __init__(self, projects: ProjectService):
        self.projects = projects

    def check(self, principal: Principal, operation: Operation) -> None:
        """Role-only check for operations that don't target a project."""
        authorize(principal, operation).raise_if_denied()

    async def project(
        self,
        principal: Principal,
        operation: Operation,
        project_id: uuid.UUID,
    ) -> Project:
        """Load project_id and authorize operation on it. Returns the project.

        The role check runs before the lookup, so roles with no access at
        all never learn whether the id exists.
        """
        if principal.role not in PERMISSIONS[operation].roles:
            authorize(principal, operation).raise_if_denied()
        project = await self.projects.find(project_id)
        authorize(principal, operation, project).raise_if_denied()
        return project
