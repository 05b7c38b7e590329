"""
Shared helpers for ProposalDesk examples.

Handles the health check and account setup (register + login) so each
example can focus on its specific workflow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8000/api/v1"
PASSWORD = "demo-password-123"


def check_backend() -> None:
    """Verify the backend is reachable and its database answers."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  uvicorn proposaldesk.main:app --reload --port 8000")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Redis:    {'✓' if health['redis'] == 'ok' else '✗'}")

    if health["status"] != "healthy":
        print("\nERROR: Database is not reachable. Run `proposaldesk init-db` once it is up.")
        sys.exit(1)


def signup(role: str, name: str) -> dict:
    """Register a fresh account and log it in.

    Uses a unique email per run so examples can be re-run. Returns a dict
    with keys: user, client (an httpx Client carrying the bearer token).
    """
    run_id = uuid.uuid4().hex[:8]
    email = f"{role}-{run_id}@example.edu"

    resp = httpx.post(
        f"{BASE}/auth/register",
        json={"email": email, "name": name, "password": PASSWORD, "role": role},
        timeout=10,
    )
    if resp.status_code != 201:
        print(f"ERROR: Registration failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    user = resp.json()

    resp = httpx.post(
        f"{BASE}/auth/login",
        json={"email": email, "password": PASSWORD},
        timeout=10,
    )
    if resp.status_code != 200:
        print(f"ERROR: Login failed: {resp.status_code} {resp.text}")
        sys.exit(1)

    token = resp.json()["access_token"]
    print(f"  {role.title():<11} {name} ({user['id'][:8]}...)")
    return {
        "user": user,
        "client": httpx.Client(
            base_url=BASE,
            timeout=10,
            headers={"Authorization": f"Bearer {token}"},
        ),
    }
