"""
API Router Aggregator.

Combines all v1 API routers into a single router for the main app. The
websocket router is mounted separately, outside the API prefix.
"""

from fastapi import APIRouter

from app.api.v1 import admin, applications, auth, jobs, notifications

api_router = APIRouter()

# Include all v1 routers with their prefixes and tags
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["Jobs"],
)

api_router.include_router(
    applications.router,
    prefix="/applications",
    tags=["Applications"],
)

api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notifications"],
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"],
)
