"""Role-permission matrix — the single table every operation goes through.

Each operation maps each allowed role to a capability predicate
(principal, record) → bool. A role missing from an operation's row is
never allowed, whatever the record says.

    Operation            student         supervisor        admin
    ─────────────────    ─────────────   ───────────────   ─────
    create project       yes (as self)   -                 -
    check title          yes             -                 -
    list projects        own             assigned          all
    read project         owner           assigned          all
    update project       -               assigned          all
    delete project       -               -                 yes
    supervisor roster    yes             -                 yes
    list/read users      -               -                 yes
    update/delete users  -               -                 yes

Predicates only read record.student_id / record.supervisor_id, so they
work on ORM rows and plain test fixtures alike.
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Protocol

from proposaldesk.auth.principal import Principal
from proposaldesk.db.models import Role


class Operation(str, enum.Enum):
    CREATE_PROJECT = "project.create"
    CHECK_TITLE = "project.check_title"
    LIST_PROJECTS = "project.list"
    READ_PROJECT = "project.read"
    UPDATE_PROJECT = "project.update"
    DELETE_PROJECT = "project.delete"
    SUPERVISOR_ROSTER = "user.supervisors"
    LIST_USERS = "user.list"
    READ_USER = "user.read"
    UPDATE_USER = "user.update"
    DELETE_USER = "user.delete"


class OwnedRecord(Protocol):
    student_id: uuid.UUID
    supervisor_id: uuid.UUID


Predicate = Callable[[Principal, Optional[OwnedRecord]], bool]


# ─── Capability predicates ───────────────────────────────


def anyone(principal: Principal, record: Optional[OwnedRecord]) -> bool:
    """Unconditional: the role alone is enough."""
    return True


def owns_as_student(principal: Principal, record: Optional[OwnedRecord]) -> bool:
    return record is not None and record.student_id == principal.id


def assigned_as_supervisor(principal: Principal, record: Optional[OwnedRecord]) -> bool:
    return record is not None and record.supervisor_id == principal.id


# ─── The matrix ──────────────────────────────────────────


@dataclass(frozen=True)
class Rule:
    """Who may perform an operation.

    record_scoped rules are evaluated against a target project; the
    predicate decides per record.
    """

    roles: Mapping[Role, Predicate]
    record_scoped: bool = False


_ADMIN_ONLY = Rule(roles={Role.ADMIN: anyone})

_OWNER_READ = Rule(
    roles={
        Role.STUDENT: owns_as_student,
        Role.SUPERVISOR: assigned_as_supervisor,
        Role.ADMIN: anyone,
    },
    record_scoped=True,
)

PERMISSIONS: dict[Operation, Rule] = {
    Operation.CREATE_PROJECT: Rule(roles={Role.STUDENT: anyone}),
    Operation.CHECK_TITLE: Rule(roles={Role.STUDENT: anyone}),
    Operation.LIST_PROJECTS: Rule(
        roles={Role.STUDENT: anyone, Role.SUPERVISOR: anyone, Role.ADMIN: anyone}
    ),
    Operation.READ_PROJECT: _OWNER_READ,
    Operation.UPDATE_PROJECT: Rule(
        roles={Role.SUPERVISOR: assigned_as_supervisor, Role.ADMIN: anyone},
        record_scoped=True,
    ),
    Operation.DELETE_PROJECT: Rule(roles={Role.ADMIN: anyone}, record_scoped=True),
    Operation.SUPERVISOR_ROSTER: Rule(roles={Role.STUDENT: anyone, Role.ADMIN: anyone}),
    Operation.LIST_USERS: _ADMIN_ONLY,
    Operation.READ_USER: _ADMIN_ONLY,
    Operation.UPDATE_USER: _ADMIN_ONLY,
    Operation.DELETE_USER: _ADMIN_ONLY,
}


# Which owner column scopes a role's project list (None = everything).
# Mirrors the READ_PROJECT predicates above.
PROJECT_LIST_SCOPE: dict[Role, Optional[str]] = {
    Role.STUDENT: "student_id",
    Role.SUPERVISOR: "supervisor_id",
    Role.ADMIN: None,
}
