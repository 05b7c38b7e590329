"""User service — the identity store.

Holds user records (id, name, email, credential hash, role) and nothing
else. Self-service registration may pick student or supervisor; admin
accounts only come from create_user() (admin-only route or the
bootstrap CLI). Role changes go through update_user(), which is
admin-only at the guard.

Emails are compared case-insensitively by storing them normalized.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from proposaldesk.auth.password import hash_password, needs_upgrade, verify_password
from proposaldesk.db.engine import storage_call
from proposaldesk.db.models import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, Role, User
from proposaldesk.errors import (
    DuplicateEmail,
    InvalidCredential,
    NotFound,
    ValidationError,
)
from proposaldesk.events.store import EventStore, user_stream
from proposaldesk.events.types import (
    USER_DELETED,
    USER_REGISTERED,
    USER_ROLE_CHANGED,
    USER_UPDATED,
)

logger = structlog.get_logger()

PASSWORD_MIN_LENGTH = 8
SELF_SERVICE_ROLES = {Role.STUDENT, Role.SUPERVISOR}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def parse_role(value: Role | str) -> Role:
    try:
        return Role(value)
    except ValueError:
        allowed = ", ".join(r.value for r in Role)
        raise ValidationError(f"Role must be one of: {allowed}")


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Please provide a name")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name cannot be more than {NAME_MAX_LENGTH} characters")
    return name


def _clean_email(email: str) -> str:
    email = normalize_email(email or "")
    if not email or "@" not in email:
        raise ValidationError("Please provide a valid email")
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValidationError(f"Email cannot be more than {EMAIL_MAX_LENGTH} characters")
    return email


class UserService:
    """Business logic for user records."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.events = EventStore(db)

    # ─── Read ────────────────────────────────────────────

    async def find(self, user_id: uuid.UUID) -> Optional[User]:
        async with storage_call("user.find"):
            return await self.db.get(User, user_id)

    async def get(self, user_id: uuid.UUID) -> User:
        user = await self.find(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        async with storage_call("user.find_by_email"):
            result = await self.db.execute(
                select(User).where(User.email == normalize_email(email))
            )
            return result.scalars().first()

    async def list_users(self) -> list[User]:
        async with storage_call("user.list"):
            result = await self.db.execute(select(User).order_by(User.created_at))
            return list(result.scalars().all())

    async def list_supervisors(self) -> list[User]:
        async with storage_call("user.list_supervisors"):
            result = await self.db.execute(
                select(User)
                .where(User.role == Role.SUPERVISOR.value)
                .order_by(User.name)
            )
            return list(result.scalars().all())

    # ─── Create ──────────────────────────────────────────

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Role | str = Role.STUDENT,
    ) -> User:
        """Self-service sign-up. Only student and supervisor may be chosen."""
        role = parse_role(role)
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError("Admin accounts can only be created by an existing admin")
        return await self.create_user(name=name, email=email, password=password, role=role)

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: Role | str,
        actor_id: Optional[uuid.UUID] = None,
    ) -> User:
        """Create a user with any role. Callers are responsible for gating admin creation."""
        role = parse_role(role)
        name = _clean_name(name)
        email = _clean_email(email)
        if len(password or "") < PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
            )

        if await self.find_by_email(email):
            raise DuplicateEmail()

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role.value,
        )
        async with storage_call("user.create"):
            self.db.add(user)
            try:
                await self.db.flush()
            except IntegrityError:
                await self.db.rollback()
                raise DuplicateEmail()

            await self.events.append(
                stream_id=user_stream(user.id),
                event_type=USER_REGISTERED,
                data={"email": email, "role": role.value},
                actor_id=actor_id,
            )
            await self.db.commit()

        logger.info("user.created", user_id=str(user.id), role=role.value)
        return user

    # ─── Login ───────────────────────────────────────────

    async def authenticate_password(self, email: str, password: str) -> User:
        """Check email + password. Same error for unknown email and wrong password."""
        user = await self.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("auth.login_failed", email=normalize_email(email))
            raise InvalidCredential("Invalid credentials")

        # Auto-upgrade legacy SHA-256 hashes to bcrypt on successful login
        if needs_upgrade(user.password_hash):
            async with storage_call("user.upgrade_hash"):
                user.password_hash = hash_password(password)
                await self.db.commit()
        return user

    # ─── Update / delete (admin) ─────────────────────────

    async def update_user(
        self,
        user_id: uuid.UUID,
        name: Optional[str] = None,
        email: Optional[str] = None,
        role: Optional[Role | str] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> User:
        """Update name, email and/or role. Passwords are never changed here."""
        user = await self.get(user_id)

        changes: dict = {}
        if name is not None:
            user.name = _clean_name(name)
            changes["name"] = user.name
        if email is not None:
            email = _clean_email(email)
            if email != user.email:
                existing = await self.find_by_email(email)
                if existing is not None and existing.id != user.id:
                    raise DuplicateEmail()
                user.email = email
                changes["email"] = email
        old_role = user.role
        if role is not None:
            user.role = parse_role(role).value

        async with storage_call("user.update"):
            if changes:
                await self.events.append(
                    stream_id=user_stream(user.id),
                    event_type=USER_UPDATED,
                    data=changes,
                    actor_id=actor_id,
                )
            if user.role != old_role:
                await self.events.append(
                    stream_id=user_stream(user.id),
                    event_type=USER_ROLE_CHANGED,
                    data={"from": old_role, "to": user.role},
                    actor_id=actor_id,
                )
                logger.info(
                    "user.role_changed",
                    user_id=str(user.id),
                    old_role=old_role,
                    new_role=user.role,
                )
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                raise DuplicateEmail()
        return user

    async def delete_user(
        self, user_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None
    ) -> None:
        """Remove a user. Projects referencing them are left untouched."""
        user = await self.get(user_id)
        async with storage_call("user.delete"):
            await self.db.delete(user)
            await self.events.append(
                stream_id=user_stream(user_id),
                event_type=USER_DELETED,
                data={"email": user.email, "role": user.role},
                actor_id=actor_id,
            )
            await self.db.commit()
        logger.info("user.deleted", user_id=str(user_id))
