"""Authorization matrix tests — pure, no database.

authorize() only reads principal.role and the record's student_id /
supervisor_id, so plain in-memory records are enough to pin down every
cell of the role × operation table.
"""

import itertools
import uuid
from dataclasses import dataclass

import pytest

from proposaldesk.auth.principal import Principal
from proposaldesk.authz.guard import (
    AuthorizationGuard,
    Decision,
    authorize,
    project_list_filter,
)
from proposaldesk.authz.policy import PERMISSIONS, Operation
from proposaldesk.db.models import Role
from proposaldesk.errors import Forbidden, NotFound


@dataclass
class FakeProject:
    student_id: uuid.UUID
    supervisor_id: uuid.UUID
    id: uuid.UUID = None


def principal(role: Role) -> Principal:
    return Principal(id=uuid.uuid4(), role=role)


STUDENT = principal(Role.STUDENT)
OTHER_STUDENT = principal(Role.STUDENT)
SUPERVISOR = principal(Role.SUPERVISOR)
OTHER_SUPERVISOR = principal(Role.SUPERVISOR)
ADMIN = principal(Role.ADMIN)

PROJECT = FakeProject(student_id=STUDENT.id, supervisor_id=SUPERVISOR.id)

RECORD_OPS = [
    Operation.READ_PROJECT,
    Operation.UPDATE_PROJECT,
    Operation.DELETE_PROJECT,
]


def reason(decision: Decision):
    return type(decision.reason) if decision.reason else None


# ═══════════════════════════════════════════════════════════
# Matrix shape
# ═══════════════════════════════════════════════════════════


def test_every_operation_has_a_rule():
    """No operation can slip through without an entry in the table."""
    assert set(PERMISSIONS) == set(Operation)


def test_record_scoped_flags():
    assert {op for op, rule in PERMISSIONS.items() if rule.record_scoped} == set(RECORD_OPS)


# ═══════════════════════════════════════════════════════════
# Role-only operations
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "operation, allowed_roles",
    [
        (Operation.CREATE_PROJECT, {Role.STUDENT}),
        (Operation.CHECK_TITLE, {Role.STUDENT}),
        (Operation.LIST_PROJECTS, {Role.STUDENT, Role.SUPERVISOR, Role.ADMIN}),
        (Operation.SUPERVISOR_ROSTER, {Role.STUDENT, Role.ADMIN}),
        (Operation.LIST_USERS, {Role.ADMIN}),
        (Operation.READ_USER, {Role.ADMIN}),
        (Operation.UPDATE_USER, {Role.ADMIN}),
        (Operation.DELETE_USER, {Role.ADMIN}),
    ],
)
def test_role_only_operations(operation, allowed_roles):
    for role in Role:
        decision = authorize(principal(role), operation)
        if role in allowed_roles:
            assert decision.allowed, f"{role.value} should be allowed {operation.value}"
        else:
            assert not decision.allowed
            assert reason(decision) is Forbidden


# ═══════════════════════════════════════════════════════════
# Record-scoped operations
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "who, operation, expected",
    [
        # read
        (STUDENT, Operation.READ_PROJECT, None),
        (OTHER_STUDENT, Operation.READ_PROJECT, Forbidden),
        (SUPERVISOR, Operation.READ_PROJECT, None),
        (OTHER_SUPERVISOR, Operation.READ_PROJECT, Forbidden),
        (ADMIN, Operation.READ_PROJECT, None),
        # update (status / feedback)
        (STUDENT, Operation.UPDATE_PROJECT, Forbidden),
        (OTHER_STUDENT, Operation.UPDATE_PROJECT, Forbidden),
        (SUPERVISOR, Operation.UPDATE_PROJECT, None),
        (OTHER_SUPERVISOR, Operation.UPDATE_PROJECT, Forbidden),
        (ADMIN, Operation.UPDATE_PROJECT, None),
        # delete
        (STUDENT, Operation.DELETE_PROJECT, Forbidden),
        (SUPERVISOR, Operation.DELETE_PROJECT, Forbidden),
        (ADMIN, Operation.DELETE_PROJECT, None),
    ],
)
def test_record_scoped_matrix(who, operation, expected):
    decision = authorize(who, operation, PROJECT)
    assert reason(decision) is expected
    assert decision.allowed is (expected is None)


def test_owning_student_cannot_review_own_project():
    """Ownership grants read, never status/feedback changes."""
    assert authorize(STUDENT, Operation.READ_PROJECT, PROJECT)
    assert not authorize(STUDENT, Operation.UPDATE_PROJECT, PROJECT)


@pytest.mark.parametrize("operation", RECORD_OPS)
def test_missing_target_admin_sees_not_found(operation):
    decision = authorize(ADMIN, operation, None)
    assert reason(decision) is NotFound


@pytest.mark.parametrize(
    "who, operation",
    [
        (STUDENT, Operation.READ_PROJECT),
        (SUPERVISOR, Operation.READ_PROJECT),
        (SUPERVISOR, Operation.UPDATE_PROJECT),
        (STUDENT, Operation.DELETE_PROJECT),
    ],
)
def test_missing_target_non_admin_sees_forbidden(who, operation):
    """A missing id looks exactly like somebody else's project."""
    missing = authorize(who, operation, None)
    foreign = authorize(who, operation, FakeProject(uuid.uuid4(), uuid.uuid4()))
    assert reason(missing) is Forbidden
    assert reason(foreign) is Forbidden


def test_ownership_is_required_for_every_non_admin_grant():
    """Whenever a non-admin is allowed a record op, they own or supervise the record."""
    people = [STUDENT, OTHER_STUDENT, SUPERVISOR, OTHER_SUPERVISOR]
    ids = [p.id for p in people] + [uuid.uuid4()]
    for who, op, (sid, vid) in itertools.product(
        people, RECORD_OPS, itertools.product(ids, ids)
    ):
        record = FakeProject(student_id=sid, supervisor_id=vid)
        if authorize(who, op, record):
            if who.role is Role.STUDENT:
                assert record.student_id == who.id
            else:
                assert record.supervisor_id == who.id


# ═══════════════════════════════════════════════════════════
# Decision + list scoping
# ═══════════════════════════════════════════════════════════


def test_decision_raise_if_denied():
    Decision.allow().raise_if_denied()
    with pytest.raises(Forbidden):
        Decision.deny(Forbidden()).raise_if_denied()


def test_project_list_filter_per_role():
    assert project_list_filter(STUDENT) == {"student_id": STUDENT.id}
    assert project_list_filter(SUPERVISOR) == {"supervisor_id": SUPERVISOR.id}
    assert project_list_filter(ADMIN) == {}


# ═══════════════════════════════════════════════════════════
# AuthorizationGuard (with a stub project lookup)
# ═══════════════════════════════════════════════════════════


class StubProjects:
    def __init__(self, *projects):
        self.by_id = {p.id: p for p in projects}
        self.lookups = 0

    async def find(self, project_id):
        self.lookups += 1
        return self.by_id.get(project_id)


@pytest.mark.asyncio
async def test_guard_returns_loaded_project():
    project = FakeProject(STUDENT.id, SUPERVISOR.id, id=uuid.uuid4())
    guard = AuthorizationGuard(StubProjects(project))
    assert await guard.project(SUPERVISOR, Operation.UPDATE_PROJECT, project.id) is project


@pytest.mark.asyncio
async def test_guard_role_check_runs_before_lookup():
    """A student asking to delete never triggers a lookup."""
    projects = StubProjects()
    guard = AuthorizationGuard(projects)
    with pytest.raises(Forbidden):
        await guard.project(STUDENT, Operation.DELETE_PROJECT, uuid.uuid4())
    assert projects.lookups == 0


@pytest.mark.asyncio
async def test_guard_missing_project():
    guard = AuthorizationGuard(StubProjects())
    with pytest.raises(NotFound):
        await guard.project(ADMIN, Operation.READ_PROJECT, uuid.uuid4())
    with pytest.raises(Forbidden):
        await guard.project(STUDENT, Operation.READ_PROJECT, uuid.uuid4())
