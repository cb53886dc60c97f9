"""Comment actions, live comment threads and the comment edit state machine.

Comments live flat in ``post_comments``; the reply forest is rebuilt from the
full set on every change. Actions that interest another user fan out a social
notification into ``notifications``. Fan-out is best effort and never fails
the comment action itself.

``@name`` mentions are resolved against the ``users`` collection by display
name or name, case-insensitively, and stored as ``mentionedUsers``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable

from pawfeed.comments.thread_builder import CommentNode, build_comment_forest
from pawfeed.errors.exceptions import AuthorizationError, NotFoundError, PawFeedError, ValidationError
from pawfeed.models.comment import CommentDocument
from pawfeed.models.enums import EditState, SocialNotificationType
from pawfeed.services.clock import utc_now
from pawfeed.services.id_generator import generate_id
from pawfeed.store.base import ArrayRemove, ArrayUnion, Document, DocumentQuery, DocumentStore, Subscription

logger = logging.getLogger(__name__)

COMMENTS_COLLECTION = "post_comments"
POSTS_COLLECTION = "posts"
NOTIFICATIONS_COLLECTION = "notifications"
USERS_COLLECTION = "users"
MAX_COMMENT_LENGTH = 5000
PREVIEW_LENGTH = 50

_MENTION_RE = re.compile(r"@([A-Za-z0-9_ ]+)")


def _clean_text(text: str | None) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError("Comment text must not be empty")
    if len(cleaned) > MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"Comment text exceeds {MAX_COMMENT_LENGTH} characters",
            {"length": len(cleaned)},
        )
    return cleaned


def _preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def comments_query(post_id: str) -> DocumentQuery:
    return DocumentQuery(collection=COMMENTS_COLLECTION).where("postId", "==", post_id)


def extract_mentions(text: str) -> list[str]:
    """Return the distinct ``@`` mention candidates in ``text``, in order of appearance.

    A candidate runs to the next character that cannot appear in a name, so
    it may carry trailing words; ``match_mentions`` trims those off.
    """
    mentions: list[str] = []
    for match in _MENTION_RE.finditer(text or ""):
        candidate = match.group(1).strip()
        if candidate and candidate not in mentions:
            mentions.append(candidate)
    return mentions


def match_mentions(candidates: list[str], users: list[Document]) -> list[str]:
    """Map mention candidates to user ids, longest matching name first."""
    names: dict[str, str] = {}
    for user in users:
        for name in (user.get("displayName"), user.get("name")):
            if name and user.get("id"):
                names.setdefault(str(name).lower().strip(), str(user["id"]))
    ordered = sorted(names, key=len, reverse=True)

    user_ids: list[str] = []
    for candidate in candidates:
        lowered = candidate.lower()
        for name in ordered:
            if lowered == name or lowered.startswith(name + " "):
                if names[name] not in user_ids:
                    user_ids.append(names[name])
                break
    return user_ids


class CommentService:
    """Comment actions performed on behalf of one principal."""

    def __init__(
        self,
        store: DocumentStore,
        principal_id: str,
        principal_name: str | None = None,
        notifications_enabled: bool = True,
    ):
        self._store = store
        self.principal_id = principal_id
        self.principal_name = principal_name
        self.notifications_enabled = notifications_enabled

    @property
    def _display_name(self) -> str:
        return self.principal_name or "Someone"

    async def load_forest(self, post_id: str) -> list[CommentNode]:
        docs = await self._store.query(comments_query(post_id))
        return build_comment_forest(docs)

    async def get_comment(self, comment_id: str) -> CommentDocument:
        doc = await self._store.get(COMMENTS_COLLECTION, comment_id)
        if doc is None:
            raise NotFoundError("Comment", comment_id)
        return CommentDocument.model_validate(doc)

    async def add_comment(self, post_id: str, text: str, parent_id: str | None = None) -> CommentDocument:
        """Create a top-level comment, or a reply when ``parent_id`` is given."""
        cleaned = _clean_text(text)
        parent: CommentDocument | None = None
        if parent_id:
            parent = await self.get_comment(parent_id)
            if parent.post_id != post_id:
                raise ValidationError(
                    "Parent comment belongs to a different post",
                    {"parent_id": parent_id, "post_id": post_id},
                )
        mentioned = await self._resolve_mentions(cleaned)
        data = {
            "postId": post_id,
            "userId": self.principal_id,
            "userName": self.principal_name,
            "text": cleaned,
            "createdAt": utc_now(),
            "likes": [],
            "parentCommentId": parent_id or None,
            "mentionedUsers": mentioned,
        }
        comment_id = await self._store.add(COMMENTS_COLLECTION, data, doc_id=generate_id("cmt_"))
        logger.info("Comment %s added to post %s by %s", comment_id, post_id, self.principal_id)

        if parent is None:
            await self._notify_post_owner(post_id, cleaned, mentioned)
        else:
            await self._notify_reply(post_id, parent)
        await self._notify_mentions(mentioned, post_id, comment_id, cleaned, is_reply=parent is not None)
        return CommentDocument.model_validate({**data, "id": comment_id})

    async def edit_comment(self, comment_id: str, text: str) -> CommentDocument:
        """Replace the comment text. Concurrent edits are last-write-wins.

        Only users newly mentioned by the edit are notified.
        """
        cleaned = _clean_text(text)
        comment = await self.get_comment(comment_id)
        self._require_author(comment, "edit")
        mentioned = await self._resolve_mentions(cleaned)
        updated_at = utc_now()
        await self._store.update(
            COMMENTS_COLLECTION,
            comment_id,
            {"text": cleaned, "updatedAt": updated_at, "mentionedUsers": mentioned},
        )
        added = [user_id for user_id in mentioned if user_id not in comment.mentioned_users]
        await self._notify_mentions(added, comment.post_id, comment_id, cleaned, is_reply=comment.parent_id is not None)
        return comment.model_copy(update={"text": cleaned, "updated_at": updated_at, "mentioned_users": mentioned})

    async def delete_comment(self, comment_id: str) -> None:
        """Delete one comment. Its replies stay and surface as top-level orphans."""
        comment = await self.get_comment(comment_id)
        self._require_author(comment, "delete")
        await self._store.delete(COMMENTS_COLLECTION, comment_id)
        logger.info("Comment %s deleted by %s", comment_id, self.principal_id)

    async def toggle_comment_like(self, comment_id: str) -> bool:
        """Like or unlike. Returns True when the principal now likes the comment."""
        comment = await self.get_comment(comment_id)
        if self.principal_id in comment.liked_by:
            await self._store.update(COMMENTS_COLLECTION, comment_id, {"likes": ArrayRemove((self.principal_id,))})
            return False
        await self._store.update(COMMENTS_COLLECTION, comment_id, {"likes": ArrayUnion((self.principal_id,))})
        await self._notify(
            comment.author_id,
            SocialNotificationType.COMMENT_LIKE,
            "New Like",
            f"{self._display_name} liked your comment",
            {"postId": comment.post_id, "commentId": comment_id, "likedBy": self.principal_id},
        )
        return True

    def _require_author(self, comment: CommentDocument, action: str) -> None:
        if comment.author_id != self.principal_id:
            raise AuthorizationError(f"Only the author may {action} comment '{comment.id}'")

    # ------------------------------------------------------------------
    # Notification fan-out
    # ------------------------------------------------------------------

    async def _resolve_mentions(self, text: str) -> list[str]:
        candidates = extract_mentions(text)
        if not candidates:
            return []
        try:
            users = await self._store.query(DocumentQuery(collection=USERS_COLLECTION))
        except PawFeedError as exc:
            logger.warning("Mention lookup failed, storing comment without mentions: %s", exc)
            return []
        return match_mentions(candidates, users)

    async def _notify_mentions(
        self,
        user_ids: list[str],
        post_id: str | None,
        comment_id: str,
        text: str,
        is_reply: bool,
    ) -> None:
        if is_reply:
            notification_type, where = SocialNotificationType.COMMENT_MENTION_REPLY, "a reply"
        else:
            notification_type, where = SocialNotificationType.COMMENT_MENTION, "a comment"
        for user_id in user_ids:
            await self._notify(
                user_id,
                notification_type,
                "You were mentioned",
                f'{self._display_name} mentioned you in {where}: "{_preview(text)}"',
                {
                    "postId": post_id,
                    "commentId": comment_id,
                    "mentionedBy": self.principal_id,
                    "mentionedByName": self._display_name,
                },
            )

    async def _notify_post_owner(self, post_id: str, text: str, mentioned: list[str]) -> None:
        try:
            post = await self._store.get(POSTS_COLLECTION, post_id)
        except PawFeedError as exc:
            logger.warning("Post owner lookup for %s failed: %s", post_id, exc)
            return
        # A mentioned owner gets the mention notification instead
        if not post or post.get("userId") in mentioned:
            return
        await self._notify(
            post.get("userId"),
            SocialNotificationType.POST_COMMENT,
            "New Comment",
            f'{self._display_name} commented on your post: "{_preview(text)}"',
            {"postId": post_id, "commentedBy": self.principal_id},
        )

    async def _notify_reply(self, post_id: str, parent: CommentDocument) -> None:
        await self._notify(
            parent.author_id,
            SocialNotificationType.COMMENT_REPLY,
            "New Reply",
            f"{self._display_name} replied to your comment",
            {"postId": post_id, "commentId": parent.id, "repliedBy": self.principal_id},
        )
        if not parent.parent_id:
            return
        try:
            original = await self._store.get(COMMENTS_COLLECTION, parent.parent_id)
        except PawFeedError as exc:
            logger.warning("Thread owner lookup for %s failed: %s", parent.parent_id, exc)
            return
        if not original or original.get("userId") == parent.author_id:
            return
        await self._notify(
            original.get("userId"),
            SocialNotificationType.COMMENT_REPLY,
            "New Reply",
            f"{self._display_name} replied to a comment on your post",
            {"postId": post_id, "commentId": parent.parent_id, "repliedBy": self.principal_id},
        )

    async def _notify(
        self,
        recipient_id: str | None,
        notification_type: SocialNotificationType,
        title: str,
        body: str,
        data: Document,
    ) -> None:
        if not self.notifications_enabled or not recipient_id or recipient_id == self.principal_id:
            return
        try:
            await self._store.add(
                NOTIFICATIONS_COLLECTION,
                {
                    "userId": recipient_id,
                    "type": notification_type.value,
                    "title": title,
                    "body": body,
                    "data": {**data, "type": notification_type.value},
                    "read": False,
                    "createdAt": utc_now(),
                },
                doc_id=generate_id("notif_"),
            )
        except PawFeedError as exc:
            logger.warning("%s notification to %s failed: %s", notification_type, recipient_id, exc)


class CommentThread:
    """Live reply forest for one post, rebuilt in full on every push."""

    def __init__(self, store: DocumentStore, post_id: str, on_change: Callable[[list[CommentNode]], None] | None = None):
        self._store = store
        self.post_id = post_id
        self._on_change = on_change
        self._subscription: Subscription | None = None
        self.forest: list[CommentNode] = []
        self.last_error: Exception | None = None

    @property
    def is_open(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def open(self) -> None:
        if self.is_open:
            return
        self._subscription = await self._store.subscribe(comments_query(self.post_id), self._apply, self._handle_error)

    def close(self) -> None:
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None

    def _apply(self, docs: list[Document]) -> None:
        self.forest = build_comment_forest(docs)
        self.last_error = None
        if self._on_change is not None:
            self._on_change(self.forest)

    def _handle_error(self, exc: Exception) -> None:
        self.last_error = exc
        logger.warning("Comment subscription for post %s failed, keeping last forest: %s", self.post_id, exc)


class CommentEditor:
    """Edit state machine for one comment: idle, editing, saving, back to idle.

    A failed save returns to idle with ``error`` set; the draft is kept so the
    caller can retry.
    """

    def __init__(self, comment_id: str, save: Callable[[str, str], Awaitable[object]]):
        self.comment_id = comment_id
        self._save = save
        self.state = EditState.IDLE
        self.draft = ""
        self.error: str | None = None

    def begin(self, current_text: str) -> None:
        if self.state is EditState.SAVING:
            raise ValidationError("A save is already in progress")
        self.state = EditState.EDITING
        self.draft = current_text
        self.error = None

    def cancel(self) -> None:
        if self.state is EditState.EDITING:
            self.state = EditState.IDLE
            self.draft = ""

    async def submit(self, text: str | None = None) -> bool:
        """Save the draft. Returns True on success."""
        if self.state is not EditState.EDITING:
            raise ValidationError(f"Cannot submit while {self.state}")
        if text is not None:
            self.draft = text
        self.state = EditState.SAVING
        try:
            await self._save(self.comment_id, self.draft)
        except PawFeedError as exc:
            self.error = exc.message
            self.state = EditState.IDLE
            logger.warning("Saving comment %s failed: %s", self.comment_id, exc.message)
            return False
        self.error = None
        self.draft = ""
        self.state = EditState.IDLE
        return True
