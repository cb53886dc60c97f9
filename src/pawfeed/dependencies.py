"""FastAPI dependency injection providers."""

from fastapi import Depends, Request

from pawfeed.comments.service import CommentService
from pawfeed.config import settings
from pawfeed.errors.exceptions import AuthenticationError
from pawfeed.feed.engine import NotificationFeed
from pawfeed.feed.registry import FeedRegistry
from pawfeed.store.base import DocumentStore


def get_principal(request: Request) -> str:
    """Return the acting principal id from the X-Principal-Id header or raise 401."""
    principal_id = (request.headers.get("x-principal-id") or "").strip()
    if not principal_id:
        raise AuthenticationError("X-Principal-Id header required")
    return principal_id


def get_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


def get_feed_registry(request: Request) -> FeedRegistry:
    return request.app.state.feed_registry


async def get_feed(
    principal_id: str = Depends(get_principal),
    registry: FeedRegistry = Depends(get_feed_registry),
) -> NotificationFeed:
    """Return the principal's running feed session, starting it on first use."""
    return await registry.get(principal_id)


def get_comment_service(
    request: Request,
    principal_id: str = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
) -> CommentService:
    return CommentService(
        store,
        principal_id,
        principal_name=request.headers.get("x-principal-name") or None,
        notifications_enabled=settings.comment_notifications_enabled,
    )
