"""The authenticated identity behind a request."""

import uuid
from dataclasses import dataclass

from proposaldesk.db.models import Role


@dataclass(frozen=True)
class Principal:
    """Who is making the request: user id plus the role read at verification time."""

    id: uuid.UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
