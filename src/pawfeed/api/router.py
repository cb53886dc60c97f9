"""Master API router mounted at /api/v1."""

from fastapi import APIRouter
from pawfeed.api.routes import (
    comments,
    health,
    notifications,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(notifications.router)
api_router.include_router(comments.router)
