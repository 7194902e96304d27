"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth routes decide per-route whether a logged-in identity is
required (via Depends(get_current_identity)), since signup/login must be
reachable while logged out and /me must not.
"""

from fastapi import APIRouter

from doorkeeper.api.auth import router as auth_router
from doorkeeper.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
