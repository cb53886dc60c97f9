"""Notification feed session: adapters, merger, read state, hidden items and badge for one principal.

Every adapter push runs one synchronous reconciliation pass (timeline and
badge are derived on demand from the latest snapshots). Remote writes from
``mark_as_read``, ``delete_owned`` and ``delete_all`` are fire-and-forget: local
state changes first, the write runs as a background task whose failure is
only logged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from pawfeed.errors.exceptions import AuthorizationError
from pawfeed.feed.adapter import EventSourceAdapter
from pawfeed.feed.badge import BADGE_CAP, badge_label, compute_badge, unread_by_category
from pawfeed.feed.hidden import HiddenItemStore
from pawfeed.feed.read_state import ReadStateStore
from pawfeed.feed.sources import get_source
from pawfeed.feed.timeline import merge_timeline
from pawfeed.models.enums import NotificationCategory, ReadModel
from pawfeed.models.notification import NotificationEvent
from pawfeed.services.clock import utc_now
from pawfeed.storage.local import KeyValueStorage
from pawfeed.store.base import DocumentStore

logger = logging.getLogger(__name__)

FeedListener = Callable[["NotificationFeed"], None]


class NotificationFeed:
    """Live, merged notification feed for one principal."""

    def __init__(
        self,
        principal_id: str,
        store: DocumentStore,
        storage: KeyValueStorage,
        categories: Iterable[NotificationCategory] | None = None,
        limit: int = 20,
        badge_cap: int = BADGE_CAP,
        read_state: ReadStateStore | None = None,
        hidden: HiddenItemStore | None = None,
    ):
        self.principal_id = principal_id
        self.badge_cap = badge_cap
        self._store = store
        self.read_state = read_state or ReadStateStore(principal_id, storage)
        self.hidden = hidden or HiddenItemStore(principal_id, storage)
        self._adapters: dict[NotificationCategory, EventSourceAdapter] = {
            category: EventSourceAdapter(get_source(category), principal_id, store, limit, self._handle_push)
            for category in (categories or list(NotificationCategory))
        }
        self._listeners: list[FeedListener] = []
        self._pending: set[asyncio.Task] = set()
        self._version = 0
        self._badge_cache: tuple[tuple[int, int, int], int] | None = None
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def categories(self) -> list[NotificationCategory]:
        return list(self._adapters)

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        await self.read_state.load(self._adapters)
        await self.hidden.load(self._adapters)
        for adapter in self._adapters.values():
            await adapter.open()
        logger.info("Feed started for %s (%d categories)", self.principal_id, len(self._adapters))

    def unsubscribe_all(self) -> None:
        """Tear down every adapter subscription. Safe to call repeatedly."""
        for adapter in self._adapters.values():
            adapter.close()
        self._started = False

    async def close(self) -> None:
        self.unsubscribe_all()
        await self.wait_pending_writes()
        logger.info("Feed closed for %s", self.principal_id)

    async def wait_pending_writes(self) -> None:
        """Wait for in-flight fire-and-forget remote writes."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def add_listener(self, listener: FeedListener) -> Callable[[], None]:
        """Register a callback run after every reconciliation pass; returns a remover."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def snapshots(self) -> dict[NotificationCategory, tuple[NotificationEvent, ...]]:
        return {category: adapter.snapshot for category, adapter in self._adapters.items()}

    def timeline(self, category: NotificationCategory | None = None) -> list[NotificationEvent]:
        return merge_timeline(self.snapshots(), self.hidden.sets, category)

    def is_unread(self, event: NotificationEvent) -> bool:
        return self.read_state.is_unread(event)

    def unread_counts(self) -> dict[NotificationCategory, int]:
        return unread_by_category(
            self.snapshots(),
            self.read_state.cursors,
            self.hidden.sets,
            self.read_state.flag_reads,
        )

    def unread_total(self) -> int:
        return sum(self.unread_counts().values())

    def _state_version(self) -> tuple[int, int, int]:
        return (self._version, self.read_state.version, self.hidden.version)

    def badge(self) -> int:
        version = self._state_version()
        if self._badge_cache is not None and self._badge_cache[0] == version:
            return self._badge_cache[1]
        value = compute_badge(
            self.snapshots(),
            self.read_state.cursors,
            self.hidden.sets,
            self.read_state.flag_reads,
            cap=self.badge_cap,
        )
        self._badge_cache = (version, value)
        return value

    def badge_label(self) -> str:
        return badge_label(self.unread_total(), self.badge_cap)

    def find_event(self, category: NotificationCategory, event_id: str) -> NotificationEvent | None:
        adapter = self._adapters.get(category)
        if adapter is None:
            return None
        for event in adapter.snapshot:
            if event.id == event_id:
                return event
        return None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def mark_as_read(self, event: NotificationEvent) -> None:
        source = get_source(event.category)
        if source.read_model is ReadModel.FLAG:
            changed = self.read_state.mark_flag_read(event.key)
            if changed and not event.owned_read_flag:
                self._spawn(
                    self._write_read_flag(source.collection, event.id),
                    f"mark read {event.category}/{event.id}",
                )
        else:
            changed = await self.read_state.advance(event.category, event.timestamp)
        if changed:
            self._touch()

    async def mark_all_read(self) -> None:
        """Advance every cursor to its newest event and flag every visible unread event."""
        changed = False
        for category, adapter in self._adapters.items():
            if not adapter.snapshot:
                continue
            if adapter.source.read_model is ReadModel.CURSOR:
                latest = max(event.timestamp for event in adapter.snapshot)
                changed |= await self.read_state.advance(category, latest)
                continue
            hidden_ids = self.hidden.hidden_ids(category)
            for event in adapter.snapshot:
                if event.id in hidden_ids or not self.read_state.is_unread(event):
                    continue
                self.read_state.mark_flag_read(event.key)
                self._spawn(
                    self._write_read_flag(adapter.source.collection, event.id),
                    f"mark read {category}/{event.id}",
                )
                changed = True
        if changed:
            self._touch()

    async def hide(self, category: NotificationCategory, event_id: str) -> None:
        if await self.hidden.hide(category, event_id):
            self._touch()

    async def delete_owned(self, category: NotificationCategory, event_id: str) -> None:
        """Hide locally, then delete the underlying record remotely."""
        source = get_source(category)
        if not source.owned:
            raise AuthorizationError(f"Notifications in '{category}' are read-only; hide them instead")
        await self.hide(category, event_id)
        self._spawn(
            self._store.delete(source.collection, event_id),
            f"delete {category}/{event_id}",
        )

    async def delete_all(self, category: NotificationCategory) -> int:
        """Hide every visible event in ``category``; delete remotely where owned.

        Returns the number of events dismissed. Calling it again with nothing
        visible is a no-op.
        """
        adapter = self._adapters.get(category)
        if adapter is None:
            return 0
        hidden_ids = self.hidden.hidden_ids(category)
        visible = [event.id for event in adapter.snapshot if event.id not in hidden_ids]
        if not visible:
            return 0
        await self.hidden.hide_many(category, visible)
        self._touch()
        if adapter.source.owned:
            for event_id in visible:
                self._spawn(
                    self._store.delete(adapter.source.collection, event_id),
                    f"delete {category}/{event_id}",
                )
        logger.info("Dismissed %d %s notifications for %s", len(visible), category, self.principal_id)
        return len(visible)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _handle_push(self, category: NotificationCategory) -> None:
        adapter = self._adapters[category]
        if adapter.source.read_model is ReadModel.FLAG:
            self.read_state.reconcile(category, adapter.snapshot)
        self._touch()

    def _touch(self) -> None:
        self._version += 1
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Feed listener raised for %s", self.principal_id)

    async def _write_read_flag(self, collection: str, doc_id: str) -> None:
        await self._store.update(collection, doc_id, {"read": True, "readAt": utc_now()})

    def _spawn(self, write: Awaitable[None], label: str) -> None:
        task = asyncio.ensure_future(self._guarded(write, label))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _guarded(self, write: Awaitable[None], label: str) -> None:
        try:
            await write
        except Exception as exc:
            logger.warning("Remote %s failed for %s: %s", label, self.principal_id, exc)
