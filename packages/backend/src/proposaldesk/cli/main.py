"""ProposalDesk CLI — bootstrap the database and talk to a running server.

Usage:
    proposaldesk init-db                          # Create tables (dev; use alembic in prod)
    proposaldesk create-admin --email a@uni.edu   # Bootstrap the first admin account
    proposaldesk login --email s@uni.edu          # Print an access token
    proposaldesk projects                         # List projects visible to you
    proposaldesk check-title "Graph Compression"  # Is this title taken?
    proposaldesk review <id> --status approved    # Supervisor/admin review

API commands read the token from PROPOSALDESK_TOKEN (or --token).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from proposaldesk import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("PROPOSALDESK_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the ProposalDesk backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous click handler.

    Falls back to a worker thread when a loop is already running (CliRunner
    inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    tok = token or os.environ.get("PROPOSALDESK_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set PROPOSALDESK_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _fail(resp: httpx.Response) -> None:
    """Print the API error body and exit non-zero."""
    try:
        detail = resp.json().get("detail", resp.text)
    except ValueError:
        detail = resp.text
    click.secho(f"Error {resp.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table. columns: (header, dict_key, width)."""
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k) or "—")[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _status_color(status: str) -> str:
    return {"submitted": "yellow", "approved": "green", "rejected": "red"}.get(
        status, "white"
    )


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="proposaldesk")
def main():
    """ProposalDesk — project proposals and supervisor review."""


# ---------------------------------------------------------------------------
# Database bootstrap (direct DB access)
# ---------------------------------------------------------------------------


@main.command("init-db")
def init_db():
    """Create all tables from the ORM models."""
    from proposaldesk.db.engine import engine
    from proposaldesk.db.models import Base

    async def _go():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    _run(_go())
    click.secho("Tables created.", fg="green")


@main.command("create-admin")
@click.option("--email", required=True)
@click.option("--name", default="Administrator", show_default=True)
@click.password_option()
def create_admin(email: str, name: str, password: str):
    """Create an admin account. Admins can't self-register through the API."""
    from proposaldesk.db.engine import async_session_factory, engine
    from proposaldesk.db.models import Role
    from proposaldesk.errors import ProposalDeskError
    from proposaldesk.services.user_service import UserService

    async def _go():
        try:
            async with async_session_factory() as session:
                return await UserService(session).create_user(
                    name=name, email=email, password=password, role=Role.ADMIN
                )
        finally:
            await engine.dispose()

    try:
        user = _run(_go())
    except ProposalDeskError as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Admin created: {user.email} ({user.id})", fg="green")


# ---------------------------------------------------------------------------
# API commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--email", required=True)
@click.password_option(confirmation_prompt=False)
def login(email: str, password: str):
    """Log in and print an access token (export it as PROPOSALDESK_TOKEN)."""

    async def _go():
        async with _client() as c:
            return await c.post(
                "/api/v1/auth/login", json={"email": email, "password": password}
            )

    resp = _run(_go())
    if resp.status_code != 200:
        _fail(resp)
    click.echo(resp.json()["access_token"])


@main.command()
@click.option("--token", help="Access token (or set PROPOSALDESK_TOKEN)")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def projects(token: Optional[str], as_json: bool):
    """List the projects you are allowed to see."""
    tok = _require_token(token)

    async def _go():
        async with _client(tok) as c:
            return await c.get("/api/v1/projects")

    resp = _run(_go())
    if resp.status_code != 200:
        _fail(resp)
    rows = resp.json()
    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No projects.")
        return
    for row in rows:
        row["student_name"] = (row.get("student") or {}).get("name")
        row["supervisor_name"] = (row.get("supervisor") or {}).get("name")
    _print_table(
        rows,
        [
            ("ID", "id", 36),
            ("TITLE", "title", 32),
            ("STATUS", "status", 10),
            ("STUDENT", "student_name", 18),
            ("SUPERVISOR", "supervisor_name", 18),
        ],
    )


@main.command("check-title")
@click.argument("title")
@click.option("--token", help="Access token (or set PROPOSALDESK_TOKEN)")
def check_title(title: str, token: Optional[str]):
    """Check whether a project title is already taken (students)."""
    tok = _require_token(token)

    async def _go():
        async with _client(tok) as c:
            return await c.get("/api/v1/projects/check-title", params={"title": title})

    resp = _run(_go())
    if resp.status_code != 200:
        _fail(resp)
    if resp.json()["exists"]:
        click.secho(f"'{title}' is already taken.", fg="red")
        sys.exit(2)
    click.secho(f"'{title}' is available.", fg="green")


@main.command()
@click.argument("project_id")
@click.option(
    "--status",
    type=click.Choice(["submitted", "approved", "rejected"]),
    help="New status",
)
@click.option("--feedback", help="Feedback for the student (max 500 chars)")
@click.option("--token", help="Access token (or set PROPOSALDESK_TOKEN)")
def review(project_id: str, status: Optional[str], feedback: Optional[str],
           token: Optional[str]):
    """Set a project's status and/or feedback (assigned supervisor or admin)."""
    if status is None and feedback is None:
        raise click.UsageError("Give --status and/or --feedback")
    tok = _require_token(token)

    body = {k: v for k, v in {"status": status, "feedback": feedback}.items() if v is not None}

    async def _go():
        async with _client(tok) as c:
            return await c.put(f"/api/v1/projects/{project_id}", json=body)

    resp = _run(_go())
    if resp.status_code != 200:
        _fail(resp)
    project = resp.json()
    click.echo("Project ", nl=False)
    click.secho(project["title"], bold=True, nl=False)
    click.echo(" is now ", nl=False)
    click.secho(project["status"], fg=_status_color(project["status"]))


if __name__ == "__main__":
    main()
