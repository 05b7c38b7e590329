"""API route aggregation.

All routers registered here get mounted in main.py.

Auth is applied at the include_router level using FastAPI's
dependencies parameter, so every project and user route requires a
valid bearer token even before its handler runs. Health and auth routers
are open. FastAPI caches get_principal per request, so handlers that
also take the principal don't verify twice.
"""

from fastapi import APIRouter, Depends

from proposaldesk.api.auth import router as auth_router
from proposaldesk.api.health import router as health_router
from proposaldesk.api.projects import router as projects_router
from proposaldesk.api.users import router as users_router
from proposaldesk.auth.dependencies import get_principal

# All protected routers require authentication
_auth = [Depends(get_principal)]

api_router = APIRouter(prefix="/api/v1")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: require a valid access token
api_router.include_router(projects_router, tags=["projects"], dependencies=_auth)
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
