"""API route aggregation.

All routers registered here get mounted in main.py under the configured
prefix (TRADEBOARD_API_PREFIX, "/api" by default).

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open; /users additionally requires the ADMIN role.
"""

from fastapi import APIRouter, Depends

from tradeboard.api.auth import router as auth_router
from tradeboard.api.clients import router as clients_router
from tradeboard.api.health import router as health_router
from tradeboard.api.projects import router as projects_router
from tradeboard.api.tasks import router as tasks_router
from tradeboard.api.users import router as users_router
from tradeboard.auth.dependencies import get_current_user, require_admin

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter()

# Open routes, no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes need a valid bearer token
api_router.include_router(clients_router, tags=["clients"], dependencies=_auth)
api_router.include_router(projects_router, tags=["projects"], dependencies=_auth)
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_auth)
api_router.include_router(
    users_router, tags=["users"], dependencies=[Depends(require_admin)]
)
