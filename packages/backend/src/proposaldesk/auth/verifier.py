"""Credential verifier — bearer token → Principal.

authenticate() is the first step of every gated operation:
1. Decode and check the JWT (signature, expiry, type == access)
2. Look the subject up in the users table
3. Return Principal(id, role) with the role as stored *now*

Step 3 means a demoted supervisor loses access on their very next
request, without waiting for their token to expire. Read-only.
"""

import uuid
from typing import Optional

import structlog

from proposaldesk.auth.jwt import TokenError, verify_token
from proposaldesk.auth.principal import Principal
from proposaldesk.db.models import Role
from proposaldesk.errors import InvalidCredential, PrincipalNotFound
from proposaldesk.services.user_service import UserService

logger = structlog.get_logger()


class CredentialVerifier:
    def __init__(self, users: UserService):
        self.users = users

    async def authenticate(self, token: Optional[str]) -> Principal:
        """Resolve a bearer token to a Principal.

        Raises:
            InvalidCredential: token missing, malformed, expired or not an access token
            PrincipalNotFound: token is fine but its user has been deleted
        """
        if not token:
            raise InvalidCredential("Authentication required")

        try:
            payload = verify_token(token)
        except TokenError as e:
            logger.info("auth.token_rejected", reason=str(e))
            raise InvalidCredential(str(e))

        try:
            user_id = uuid.UUID(str(payload["sub"]))
        except ValueError:
            raise InvalidCredential("Invalid token subject")

        user = await self.users.find(user_id)
        if user is None:
            logger.info("auth.principal_missing", user_id=str(user_id))
            raise PrincipalNotFound()

        return Principal(id=user.id, role=Role(user.role))
