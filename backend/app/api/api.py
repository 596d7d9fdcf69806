"""API Router Aggregator.

Aggregates all endpoints mounted under ``/api``. The Google OAuth redirect
flow lives under ``/auth`` and is exported separately as ``oauth_router``.
"""

from fastapi import APIRouter

from app.api.endpoints import admin, auth, email, notifications, oauth, users, workspaces

api_router = APIRouter()

# Mount endpoint routers
api_router.include_router(auth.router, tags=["Auth"])
api_router.include_router(email.router, tags=["Email"])
api_router.include_router(users.router, prefix="/user", tags=["Users"])
api_router.include_router(workspaces.router, prefix="/workspaces", tags=["Workspaces"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])

oauth_router = APIRouter()
oauth_router.include_router(oauth.router, tags=["OAuth"])
