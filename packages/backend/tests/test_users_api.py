"""User administration tests — admin-only management and the supervisor roster."""

import uuid

import pytest


# ═══════════════════════════════════════════════════════════
# Supervisor roster
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_roster_for_students(client, auth_headers, student, supervisor, other_supervisor):
    """Students pick supervisors from this list; it holds supervisors only."""
    r = await client.get("/api/v1/users/supervisors", headers=auth_headers(student))
    assert r.status_code == 200
    roster = r.json()
    assert [u["name"] for u in roster] == ["Dr. Carol", "Dr. Dave"]
    assert all(u["role"] == "supervisor" for u in roster)
    assert all("password_hash" not in u for u in roster)


@pytest.mark.asyncio
async def test_roster_for_admin(client, auth_headers, admin, supervisor):
    r = await client.get("/api/v1/users/supervisors", headers=auth_headers(admin))
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_roster_not_for_supervisors(client, auth_headers, supervisor):
    r = await client.get("/api/v1/users/supervisors", headers=auth_headers(supervisor))
    assert r.status_code == 403


# ═══════════════════════════════════════════════════════════
# Admin-only user management
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_users_admin_only(client, auth_headers, student, supervisor, admin):
    r = await client.get("/api/v1/users", headers=auth_headers(admin))
    assert r.status_code == 200
    assert {u["email"] for u in r.json()} == {student.email, supervisor.email, admin.email}

    for user in (student, supervisor):
        r = await client.get("/api/v1/users", headers=auth_headers(user))
        assert r.status_code == 403


@pytest.mark.asyncio
async def test_get_user(client, auth_headers, student, admin):
    r = await client.get(f"/api/v1/users/{student.id}", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["name"] == "Alice Student"

    r = await client.get(f"/api/v1/users/{uuid.uuid4()}", headers=auth_headers(admin))
    assert r.status_code == 404

    r = await client.get(f"/api/v1/users/{admin.id}", headers=auth_headers(student))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_update_user(client, auth_headers, student, admin):
    r = await client.put(
        f"/api/v1/users/{student.id}",
        json={"name": "Alice Renamed", "email": "ALICE@Uni.Example", "role": "supervisor"},
        headers=auth_headers(admin),
    )
    assert r.status_code == 200
    user = r.json()
    assert user["name"] == "Alice Renamed"
    assert user["email"] == "alice@uni.example"
    assert user["role"] == "supervisor"


@pytest.mark.asyncio
async def test_update_user_validation(client, auth_headers, student, supervisor, admin):
    headers = auth_headers(admin)
    bad_role = await client.put(
        f"/api/v1/users/{student.id}", json={"role": "dean"}, headers=headers
    )
    assert bad_role.status_code == 422
    assert bad_role.json()["error"] == "validation_error"
    assert "Role must be one of" in bad_role.json()["detail"]

    blank_name = await client.put(
        f"/api/v1/users/{student.id}", json={"name": "   "}, headers=headers
    )
    assert blank_name.status_code == 422
    assert blank_name.json()["detail"] == "Please provide a name"

    taken = await client.put(
        f"/api/v1/users/{student.id}", json={"email": supervisor.email}, headers=headers
    )
    assert taken.status_code == 409
    assert taken.json()["error"] == "duplicate_email"


@pytest.mark.asyncio
async def test_update_user_not_self_service(client, auth_headers, student):
    """Students can't promote themselves."""
    r = await client.put(
        f"/api/v1/users/{student.id}", json={"role": "admin"}, headers=auth_headers(student)
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_delete_user(client, auth_headers, student, admin):
    r = await client.delete(f"/api/v1/users/{student.id}", headers=auth_headers(student))
    assert r.status_code == 403

    r = await client.delete(f"/api/v1/users/{student.id}", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json() == {"deleted": True}

    r = await client.get(f"/api/v1/users/{student.id}", headers=auth_headers(admin))
    assert r.status_code == 404
