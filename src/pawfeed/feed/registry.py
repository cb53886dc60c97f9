"""Per-principal feed sessions held by the running service."""

import asyncio
import logging

from pawfeed.feed.badge import BADGE_CAP
from pawfeed.feed.engine import NotificationFeed
from pawfeed.storage.local import KeyValueStorage
from pawfeed.store.base import DocumentStore

logger = logging.getLogger(__name__)


class FeedRegistry:
    """Lazily starts one ``NotificationFeed`` per principal and tears them down on logout."""

    def __init__(
        self,
        store: DocumentStore,
        storage: KeyValueStorage,
        limit: int = 20,
        badge_cap: int = BADGE_CAP,
    ):
        self._store = store
        self._storage = storage
        self._limit = limit
        self._badge_cap = badge_cap
        self._feeds: dict[str, NotificationFeed] = {}
        self._lock = asyncio.Lock()

    def __contains__(self, principal_id: str) -> bool:
        return principal_id in self._feeds

    def __len__(self) -> int:
        return len(self._feeds)

    async def get(self, principal_id: str) -> NotificationFeed:
        async with self._lock:
            feed = self._feeds.get(principal_id)
            if feed is None:
                feed = NotificationFeed(
                    principal_id,
                    self._store,
                    self._storage,
                    limit=self._limit,
                    badge_cap=self._badge_cap,
                )
                await feed.start()
                self._feeds[principal_id] = feed
            return feed

    async def close(self, principal_id: str) -> bool:
        """Unsubscribe and forget the principal's feed. Returns False if none was open."""
        async with self._lock:
            feed = self._feeds.pop(principal_id, None)
        if feed is None:
            return False
        await feed.close()
        return True

    async def close_all(self) -> None:
        async with self._lock:
            feeds = list(self._feeds.values())
            self._feeds.clear()
        for feed in feeds:
            await feed.close()
        if feeds:
            logger.info("Closed %d feed sessions", len(feeds))
