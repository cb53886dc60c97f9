"""Normalized notification event and its per-category payloads.

Every category carries its own payload model. ``NotificationEvent.payload`` is
a discriminated union keyed by ``category`` so renderers can branch on the
payload type instead of probing an untyped dict.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from pawfeed.models.enums import NotificationCategory


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ApplicationPayload(_Payload):
    category: Literal[NotificationCategory.APPLICATIONS] = NotificationCategory.APPLICATIONS
    pet_name: str | None = None
    pet_breed: str | None = None
    status: str = "Submitted"


class ListingPayload(_Payload):
    category: Literal[NotificationCategory.NEW_LISTINGS] = NotificationCategory.NEW_LISTINGS
    pet_name: str | None = None
    breed: str | None = None
    age: str | None = None


class TransferPayload(_Payload):
    category: Literal[NotificationCategory.TRANSFERS] = NotificationCategory.TRANSFERS
    pet_id: str | None = None
    pet_name: str | None = None
    pet_breed: str | None = None


class RegistrationPayload(_Payload):
    category: Literal[NotificationCategory.REGISTRATIONS] = NotificationCategory.REGISTRATIONS
    pet_name: str | None = None
    approved: bool = False
    message: str | None = None


class IncidentPayload(_Payload):
    category: Literal[NotificationCategory.INCIDENTS] = NotificationCategory.INCIDENTS
    location: str | None = None
    resolved: bool = False
    message: str | None = None


class SocialPayload(_Payload):
    category: Literal[NotificationCategory.SOCIAL] = NotificationCategory.SOCIAL
    notification_type: str
    post_id: str | None = None
    comment_id: str | None = None
    actor_id: str | None = None
    body: str = ""


class FriendRequestPayload(_Payload):
    category: Literal[NotificationCategory.FRIEND_REQUESTS] = NotificationCategory.FRIEND_REQUESTS
    notification_type: str
    from_user_id: str | None = None
    body: str = ""


class AdminActionPayload(_Payload):
    category: Literal[NotificationCategory.ADMIN_ACTIONS] = NotificationCategory.ADMIN_ACTIONS
    notification_type: str
    body: str = ""
    link: str | None = None


class AnnouncementPayload(_Payload):
    category: Literal[NotificationCategory.ANNOUNCEMENTS] = NotificationCategory.ANNOUNCEMENTS
    body: str = ""
    author: str | None = None


NotificationPayload = Annotated[
    Union[
        ApplicationPayload,
        ListingPayload,
        TransferPayload,
        RegistrationPayload,
        IncidentPayload,
        SocialPayload,
        FriendRequestPayload,
        AdminActionPayload,
        AnnouncementPayload,
    ],
    Field(discriminator="category"),
]


class NotificationEvent(BaseModel):
    """One feed entry. Identity is ``(category, id)``; ``id`` alone is not unique."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    category: NotificationCategory
    timestamp: datetime
    title: str
    subtitle: str = ""
    payload: NotificationPayload
    owned_read_flag: bool | None = None

    @property
    def key(self) -> tuple[NotificationCategory, str]:
        return (self.category, self.id)
