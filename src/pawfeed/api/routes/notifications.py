"""Notification feed API: merged timeline, badge and read/hide/delete actions."""

from fastapi import APIRouter, Depends

from pawfeed.dependencies import get_feed, get_feed_registry, get_principal
from pawfeed.errors.exceptions import NotFoundError, ValidationError
from pawfeed.feed.engine import NotificationFeed
from pawfeed.feed.registry import FeedRegistry
from pawfeed.feed.timeline import parse_category_filter
from pawfeed.models.enums import NotificationCategory

router = APIRouter(prefix="/feed", tags=["Notifications"])


def _event_out(feed: NotificationFeed, event) -> dict:
    out = event.model_dump(mode="json")
    out["unread"] = feed.is_unread(event)
    return out


def _require_event(feed: NotificationFeed, category: NotificationCategory, event_id: str):
    event = feed.find_event(category, event_id)
    if event is None:
        raise NotFoundError("Notification", f"{category}/{event_id}")
    return event


@router.get("")
async def get_feed_timeline(
    category: str | None = None,
    feed: NotificationFeed = Depends(get_feed),
) -> dict:
    """Return the merged timeline, optionally filtered to one category."""
    try:
        selected = parse_category_filter(category)
    except ValueError:
        raise ValidationError(
            f"Unknown category '{category}'",
            {"allowed": ["all"] + [c.value for c in NotificationCategory]},
        )
    events = feed.timeline(selected)
    return {
        "principal_id": feed.principal_id,
        "category": selected.value if selected else "all",
        "count": len(events),
        "events": [_event_out(feed, e) for e in events],
        "badge": feed.badge(),
    }


@router.get("/badge")
async def get_badge(feed: NotificationFeed = Depends(get_feed)) -> dict:
    counts = feed.unread_counts()
    return {
        "badge": feed.badge(),
        "label": feed.badge_label(),
        "unread_total": sum(counts.values()),
        "by_category": {c.value: n for c, n in counts.items()},
    }


@router.post("/read-all")
async def mark_all_read(feed: NotificationFeed = Depends(get_feed)) -> dict:
    await feed.mark_all_read()
    return {"badge": feed.badge(), "label": feed.badge_label()}


@router.delete("/session")
async def close_feed_session(
    principal_id: str = Depends(get_principal),
    registry: FeedRegistry = Depends(get_feed_registry),
) -> dict:
    """Tear down every subscription held for the principal. Idempotent."""
    closed = await registry.close(principal_id)
    return {"principal_id": principal_id, "closed": closed}


@router.post("/{category}/{event_id}/read")
async def mark_read(
    category: NotificationCategory,
    event_id: str,
    feed: NotificationFeed = Depends(get_feed),
) -> dict:
    event = _require_event(feed, category, event_id)
    await feed.mark_as_read(event)
    return {"id": event_id, "category": category.value, "unread": feed.is_unread(event), "badge": feed.badge()}


@router.post("/{category}/{event_id}/hide")
async def hide_event(
    category: NotificationCategory,
    event_id: str,
    feed: NotificationFeed = Depends(get_feed),
) -> dict:
    await feed.hide(category, event_id)
    return {"id": event_id, "category": category.value, "hidden": True, "badge": feed.badge()}


@router.delete("/{category}/{event_id}")
async def delete_owned(
    category: NotificationCategory,
    event_id: str,
    feed: NotificationFeed = Depends(get_feed),
) -> dict:
    """Hide the notification and delete it remotely. Only owned categories allow this."""
    await feed.delete_owned(category, event_id)
    return {"id": event_id, "category": category.value, "deleted": True, "badge": feed.badge()}


@router.delete("/{category}")
async def delete_all(
    category: NotificationCategory,
    feed: NotificationFeed = Depends(get_feed),
) -> dict:
    dismissed = await feed.delete_all(category)
    return {"category": category.value, "dismissed": dismissed, "badge": feed.badge()}
