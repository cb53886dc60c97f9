"""Event source adapter, one live subscription per notification category."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pawfeed.feed.sources import CategorySource
from pawfeed.models.enums import NotificationCategory
from pawfeed.models.notification import NotificationEvent
from pawfeed.store.base import Document, DocumentStore, Subscription

logger = logging.getLogger(__name__)


class EventSourceAdapter:
    """Wraps one filtered, limited, timestamp-ordered subscription.

    Every push replaces the adapter's snapshot wholesale. A subscription error
    is logged and the previous snapshot stays in effect until the next push.
    """

    def __init__(
        self,
        source: CategorySource,
        principal_id: str,
        store: DocumentStore,
        limit: int,
        on_change: Callable[[NotificationCategory], None],
    ):
        self.source = source
        self.principal_id = principal_id
        self.limit = limit
        self._store = store
        self._on_change = on_change
        self._snapshot: tuple[NotificationEvent, ...] = ()
        self._subscription: Subscription | None = None
        self.last_error: Exception | None = None

    @property
    def category(self) -> NotificationCategory:
        return self.source.category

    @property
    def snapshot(self) -> tuple[NotificationEvent, ...]:
        return self._snapshot

    @property
    def is_open(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def open(self) -> None:
        if self.is_open:
            return
        query = self.source.query(self.principal_id, self.limit)
        self._subscription = await self._store.subscribe(query, self.apply_snapshot, self.handle_error)
        logger.info(
            "Subscribed %s for %s (collection=%s, limit=%d)",
            self.category,
            self.principal_id,
            self.source.collection,
            self.limit,
        )

    def close(self) -> None:
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None

    def apply_snapshot(self, docs: list[Document]) -> None:
        """Replace the snapshot with the normalized form of ``docs``."""
        events: list[NotificationEvent] = []
        for doc in docs:
            try:
                events.append(self.source.build(doc))
            except (KeyError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed %s document %s: %s",
                    self.category,
                    doc.get("id", "?"),
                    exc,
                )
        self._snapshot = tuple(events)
        self.last_error = None
        self._on_change(self.category)

    def handle_error(self, exc: Exception) -> None:
        self.last_error = exc
        logger.warning(
            "Subscription for %s failed, keeping last snapshot (%d events): %s",
            self.category,
            len(self._snapshot),
            exc,
        )
