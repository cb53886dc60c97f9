"""String enums for notification categories and related state."""

from enum import StrEnum


class NotificationCategory(StrEnum):
    """Declaration order doubles as the timeline tie-break priority."""

    APPLICATIONS = "applications"
    NEW_LISTINGS = "new_listings"
    TRANSFERS = "transfers"
    REGISTRATIONS = "registrations"
    INCIDENTS = "incidents"
    SOCIAL = "social"
    FRIEND_REQUESTS = "friend_requests"
    ADMIN_ACTIONS = "admin_actions"
    ANNOUNCEMENTS = "announcements"


class ReadModel(StrEnum):
    CURSOR = "cursor"
    FLAG = "flag"


class SocialNotificationType(StrEnum):
    POST_LIKE = "post_like"
    POST_COMMENT = "post_comment"
    COMMENT_LIKE = "comment_like"
    COMMENT_REPLY = "comment_reply"
    COMMENT_MENTION = "comment_mention"
    COMMENT_MENTION_REPLY = "comment_mention_reply"


class EditState(StrEnum):
    IDLE = "idle"
    EDITING = "editing"
    SAVING = "saving"
