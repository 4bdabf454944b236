"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. The notes router is fully behind the auth gate;
health and auth routers are open (auth routes establish the session).
"""

from fastapi import APIRouter, Depends

from notevault.api.auth import router as auth_router
from notevault.api.health import router as health_router
from notevault.api.notes import router as notes_router
from notevault.auth.dependencies import get_current_user

# Protected routers require a valid session token
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — cookie or bearer session token
api_router.include_router(notes_router, tags=["notes"], dependencies=_auth)
