"""FastAPI auth dependencies.

Used as Depends() in route handlers (and at include_router level) to
extract the bearer token and resolve it to the current Principal.
The core never keeps session state: each request brings its own token.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from proposaldesk.auth.principal import Principal
from proposaldesk.auth.verifier import CredentialVerifier
from proposaldesk.db.engine import get_db
from proposaldesk.services.user_service import UserService


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Pull the token out of 'Authorization: Bearer <token>' (None if absent)."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


async def get_principal(
    token: Optional[str] = Depends(bearer_token),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Resolve the request's credential (required — InvalidCredential if missing).

    Errors propagate as ProposalDeskError and are rendered as 401 by the
    API's exception handler.
    """
    return await CredentialVerifier(UserService(db)).authenticate(token)
