"""Category source registry: where each notification category comes from and how it maps.

Each ``CategorySource`` names the remote collection, the principal and type
filters, the read model, whether the principal owns (may delete) the records,
and a builder that maps one raw document onto a ``NotificationEvent``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from pawfeed.models.enums import NotificationCategory, ReadModel, SocialNotificationType
from pawfeed.models.notification import (
    AdminActionPayload,
    AnnouncementPayload,
    ApplicationPayload,
    FriendRequestPayload,
    IncidentPayload,
    ListingPayload,
    NotificationEvent,
    RegistrationPayload,
    SocialPayload,
    TransferPayload,
)
from pawfeed.services.clock import parse_timestamp
from pawfeed.store.base import Document, DocumentQuery

TIMESTAMP_FIELD = "createdAt"


def _text(doc: Document, *keys: str) -> str | None:
    """First non-empty value among ``keys``, as a string."""
    for key in keys:
        value = doc.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _data(doc: Document) -> dict:
    data = doc.get("data")
    return data if isinstance(data, dict) else {}


def _event(doc: Document, category: NotificationCategory, title: str, subtitle: str, payload, read_flag=None) -> NotificationEvent:
    return NotificationEvent(
        id=str(doc["id"]),
        category=category,
        timestamp=parse_timestamp(doc.get(TIMESTAMP_FIELD)),
        title=title,
        subtitle=subtitle,
        payload=payload,
        owned_read_flag=read_flag,
    )


# ============================================
# Per-category builders
# ============================================

def build_application(doc: Document) -> NotificationEvent:
    status = _text(doc, "status") or "Submitted"
    if status == "Approved":
        title = "Application Approved"
    elif status == "Declined":
        title = "Application Declined"
    else:
        title = "Application Update"
    pet = _text(doc, "petName", "petBreed") or "Pet"
    return _event(
        doc,
        NotificationCategory.APPLICATIONS,
        title,
        f"Pet: {pet} • Status: {status}",
        ApplicationPayload(
            pet_name=_text(doc, "petName"),
            pet_breed=_text(doc, "petBreed"),
            status=status,
        ),
    )


def build_listing(doc: Document) -> NotificationEvent:
    name = _text(doc, "petName")
    breed = _text(doc, "breed")
    age = _text(doc, "age")
    return _event(
        doc,
        NotificationCategory.NEW_LISTINGS,
        "New Pet is available for adoption",
        f"{name or 'Pet'} • {breed or 'Unknown breed'} • {age or 'Unknown age'}",
        ListingPayload(pet_name=name, breed=breed, age=age),
    )


def build_transfer(doc: Document) -> NotificationEvent:
    name = _text(doc, "petName")
    breed = _text(doc, "petBreed")
    return _event(
        doc,
        NotificationCategory.TRANSFERS,
        _text(doc, "title") or "Pet Transferred to You!",
        f"{name or 'Pet'} • {breed or 'Unknown breed'} • From Impound",
        TransferPayload(pet_id=_text(doc, "petId"), pet_name=name, pet_breed=breed),
    )


def build_registration(doc: Document) -> NotificationEvent:
    approved = doc.get("type") == "pet_registration_approved"
    name = _text(doc, "petName")
    message = _text(doc, "message")
    return _event(
        doc,
        NotificationCategory.REGISTRATIONS,
        "Pet Registration Approved!" if approved else "Pet Registration Rejected",
        f"{name or 'Pet'} • {message or 'Registration status updated'}",
        RegistrationPayload(pet_name=name, approved=approved, message=message),
    )


def build_incident(doc: Document) -> NotificationEvent:
    resolved = doc.get("type") == "incident_resolved"
    location = _text(doc, "location")
    message = _text(doc, "message")
    return _event(
        doc,
        NotificationCategory.INCIDENTS,
        "Incident Report Resolved" if resolved else "Incident Report Declined",
        f"{location or 'Unknown location'} • {message or 'Incident report status updated'}",
        IncidentPayload(location=location, resolved=resolved, message=message),
    )


def build_social(doc: Document) -> NotificationEvent:
    data = _data(doc)
    actor = _text(data, "likedBy", "commentedBy", "repliedBy", "mentionedBy")
    body = _text(doc, "body") or ""
    return _event(
        doc,
        NotificationCategory.SOCIAL,
        _text(doc, "title") or "New Activity",
        body,
        SocialPayload(
            notification_type=_text(doc, "type") or "",
            post_id=_text(data, "postId"),
            comment_id=_text(data, "commentId"),
            actor_id=actor,
            body=body,
        ),
        read_flag=bool(doc.get("read", False)),
    )


def build_friend_request(doc: Document) -> NotificationEvent:
    data = _data(doc)
    body = _text(doc, "body") or ""
    return _event(
        doc,
        NotificationCategory.FRIEND_REQUESTS,
        _text(doc, "title") or "Friend Request",
        body,
        FriendRequestPayload(
            notification_type=_text(doc, "type") or "",
            from_user_id=_text(data, "fromUserId", "acceptedBy") or _text(doc, "fromUserId"),
            body=body,
        ),
        read_flag=bool(doc.get("read", False)),
    )


def build_admin_action(doc: Document) -> NotificationEvent:
    body = _text(doc, "body", "message") or ""
    return _event(
        doc,
        NotificationCategory.ADMIN_ACTIONS,
        _text(doc, "title") or "Message from PawSafety",
        body,
        AdminActionPayload(
            notification_type=_text(doc, "type") or "",
            body=body,
            link=_text(doc, "link"),
        ),
        read_flag=bool(doc.get("read", False)),
    )


def build_announcement(doc: Document) -> NotificationEvent:
    body = _text(doc, "body", "message") or ""
    return _event(
        doc,
        NotificationCategory.ANNOUNCEMENTS,
        _text(doc, "title") or "Announcement",
        body,
        AnnouncementPayload(body=body, author=_text(doc, "author", "createdBy")),
    )


# ============================================
# Registry
# ============================================

@dataclass(frozen=True)
class CategorySource:
    category: NotificationCategory
    collection: str
    read_model: ReadModel
    owned: bool
    build: Callable[[Document], NotificationEvent]
    principal_field: str | None = "userId"
    types: tuple[str, ...] = ()
    ready_field: str | None = None

    def query(self, principal_id: str, limit: int) -> DocumentQuery:
        """The most recent ``limit`` matching documents, newest first."""
        query = DocumentQuery(
            collection=self.collection,
            order_by=TIMESTAMP_FIELD,
            descending=True,
            limit=limit,
        )
        if self.principal_field:
            query = query.where(self.principal_field, "==", principal_id)
        if len(self.types) == 1:
            query = query.where("type", "==", self.types[0])
        elif self.types:
            query = query.where("type", "in", list(self.types))
        if self.ready_field:
            query = query.where(self.ready_field, "!=", False)
        return query


CATEGORY_SOURCES: dict[NotificationCategory, CategorySource] = {
    NotificationCategory.APPLICATIONS: CategorySource(
        category=NotificationCategory.APPLICATIONS,
        collection="adoption_applications",
        read_model=ReadModel.CURSOR,
        owned=False,
        build=build_application,
    ),
    NotificationCategory.NEW_LISTINGS: CategorySource(
        category=NotificationCategory.NEW_LISTINGS,
        collection="adoptable_pets",
        read_model=ReadModel.CURSOR,
        owned=False,
        build=build_listing,
        principal_field=None,
        ready_field="readyForAdoption",
    ),
    NotificationCategory.TRANSFERS: CategorySource(
        category=NotificationCategory.TRANSFERS,
        collection="user_notifications",
        read_model=ReadModel.CURSOR,
        owned=False,
        build=build_transfer,
        types=("pet_transfer",),
    ),
    NotificationCategory.REGISTRATIONS: CategorySource(
        category=NotificationCategory.REGISTRATIONS,
        collection="notifications",
        read_model=ReadModel.CURSOR,
        owned=False,
        build=build_registration,
        types=("pet_registration_approved", "pet_registration_rejected"),
    ),
    NotificationCategory.INCIDENTS: CategorySource(
        category=NotificationCategory.INCIDENTS,
        collection="user_notifications",
        read_model=ReadModel.CURSOR,
        owned=False,
        build=build_incident,
        types=("incident_resolved", "incident_declined"),
    ),
    NotificationCategory.SOCIAL: CategorySource(
        category=NotificationCategory.SOCIAL,
        collection="notifications",
        read_model=ReadModel.FLAG,
        owned=True,
        build=build_social,
        types=tuple(t.value for t in SocialNotificationType),
    ),
    NotificationCategory.FRIEND_REQUESTS: CategorySource(
        category=NotificationCategory.FRIEND_REQUESTS,
        collection="notifications",
        read_model=ReadModel.FLAG,
        owned=True,
        build=build_friend_request,
        types=("friend_request", "friend_request_accepted"),
    ),
    NotificationCategory.ADMIN_ACTIONS: CategorySource(
        category=NotificationCategory.ADMIN_ACTIONS,
        collection="notifications",
        read_model=ReadModel.FLAG,
        owned=True,
        build=build_admin_action,
        types=("admin_action", "report_status", "account_warning"),
    ),
    NotificationCategory.ANNOUNCEMENTS: CategorySource(
        category=NotificationCategory.ANNOUNCEMENTS,
        collection="announcements",
        read_model=ReadModel.CURSOR,
        owned=False,
        build=build_announcement,
        principal_field=None,
    ),
}


def get_source(category: NotificationCategory) -> CategorySource:
    return CATEGORY_SOURCES[category]
