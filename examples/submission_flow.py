#!/usr/bin/env python3
"""
ProposalDesk — proposal submission and review in one script.

Two students and two supervisors sign up. A student probes a title,
submits a proposal, a second student collides on the same title, the
wrong supervisor is turned away, and the assigned supervisor reviews it.

Run with: python examples/submission_flow.py

Requires: pip install httpx
Backend must be running: http://localhost:8000
"""

from _common import check_backend, signup


def main():
    check_backend()

    print("\n1. Signing up...")
    alice = signup("student", "Alice")
    bob = signup("student", "Bob")
    carol = signup("supervisor", "Dr. Carol")
    dave = signup("supervisor", "Dr. Dave")

    # ── Pick a supervisor and a title ─────────────────────────────
    print("\n2. Alice browses supervisors and checks her title...")
    roster = alice["client"].get("/users/supervisors").json()
    print(f"   {len(roster)} supervisors available")

    title = f"Graph Compression {carol['user']['id'][:4]}"
    check = alice["client"].get("/projects/check-title", params={"title": title}).json()
    print(f"   '{title}' taken? {check['exists']}")

    # ── Submit ────────────────────────────────────────────────────
    print("\n3. Alice submits her proposal...")
    resp = alice["client"].post("/projects", json={
        "title": title,
        "description": "Lossless compression schemes for large sparse graphs.",
        "supervisor": carol["user"]["id"],
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    project = resp.json()
    print(f"   Project {project['id'][:8]}... is {project['status']}")

    # ── Duplicate title ───────────────────────────────────────────
    print("\n4. Bob tries the same title with different spacing and case...")
    resp = bob["client"].post("/projects", json={
        "title": f"  {title.upper()} ",
        "description": "Me too.",
        "supervisor": carol["user"]["id"],
    })
    print(f"   {resp.status_code}: {resp.json()['detail']}")

    # ── Access control ────────────────────────────────────────────
    print("\n5. Dr. Dave (not assigned) tries to read and approve it...")
    resp = dave["client"].get(f"/projects/{project['id']}")
    print(f"   read   → {resp.status_code} {resp.json()['error']}")
    resp = dave["client"].put(f"/projects/{project['id']}", json={"status": "approved"})
    print(f"   review → {resp.status_code} {resp.json()['error']}")

    # ── Review ────────────────────────────────────────────────────
    print("\n6. Dr. Carol reviews it...")
    resp = carol["client"].put(f"/projects/{project['id']}", json={
        "status": "rejected",
        "feedback": "Needs clearer scope",
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"

    seen = alice["client"].get(f"/projects/{project['id']}").json()
    print(f"   Alice sees: {seen['status']} — \"{seen['feedback']}\"")

    # ── History ───────────────────────────────────────────────────
    print("\n7. Audit trail:")
    for event in alice["client"].get(f"/projects/{project['id']}/history").json():
        print(f"   {event['created_at'][:19]}  {event['type']:<26} {event['data']}")

    print("\n✓ Done.")


if __name__ == "__main__":
    main()
