"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a fully protected API, most routers here mix open and
authenticated routes (register/login are open, change-password is not),
so auth is declared per route with Depends(get_current_account) or
Depends(get_current_account_optional) instead of at include_router level.
"""

from fastapi import APIRouter

from socialnet.api.follows import router as follows_router
from socialnet.api.health import router as health_router
from socialnet.api.profiles import router as profiles_router
from socialnet.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(profiles_router, tags=["profiles"])
api_router.include_router(follows_router, tags=["follows"])
