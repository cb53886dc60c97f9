"""Read-state tracker: per-category last-seen cursors plus optimistic read flags.

Cursor-model categories are unread while ``event.timestamp > cursor``. Cursors
only move forward and are persisted as epoch milliseconds in local storage.
Flag-model categories are unread while the record's own read flag is false and
no local optimistic read has been recorded for ``(category, id)``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Set
from datetime import datetime, timedelta
from types import MappingProxyType

from pawfeed.errors.exceptions import LocalStorageError
from pawfeed.feed.sources import get_source
from pawfeed.models.enums import NotificationCategory, ReadModel
from pawfeed.models.notification import NotificationEvent
from pawfeed.services.clock import EPOCH, from_epoch_ms
from pawfeed.storage.local import KeyValueStorage, last_seen_key

logger = logging.getLogger(__name__)

EventKey = tuple[NotificationCategory, str]


def is_unread(
    event: NotificationEvent,
    cursors: Mapping[NotificationCategory, datetime],
    flag_reads: Set[EventKey],
) -> bool:
    if get_source(event.category).read_model is ReadModel.FLAG:
        return not event.owned_read_flag and event.key not in flag_reads
    return event.timestamp > cursors.get(event.category, EPOCH)


def _serialize_cursor(value: datetime) -> str:
    # Round up so a reloaded cursor never falls below a sub-millisecond event time
    micros = (value - EPOCH) // timedelta(microseconds=1)
    return str(-(-micros // 1000))


def _parse_cursor(raw: str | None) -> datetime:
    if not raw:
        return EPOCH
    try:
        return from_epoch_ms(float(raw))
    except ValueError:
        logger.warning("Ignoring unparseable read cursor %r", raw)
        return EPOCH


class ReadStateStore:
    """Explicit read-state object shared by every consumer of one principal's feed.

    ``version`` increases on every change so holders can tell when derived
    values such as the badge are stale.
    """

    def __init__(self, principal_id: str, storage: KeyValueStorage):
        self.principal_id = principal_id
        self._storage = storage
        self._cursors: dict[NotificationCategory, datetime] = {}
        self._flag_reads: set[EventKey] = set()
        self._unloaded: set[NotificationCategory] = set()
        self.version = 0

    async def load(self, categories: Iterable[NotificationCategory]) -> None:
        """Read persisted cursors. A failed read behaves as epoch zero."""
        for category in categories:
            if get_source(category).read_model is not ReadModel.CURSOR:
                continue
            try:
                raw = await self._storage.get(last_seen_key(self.principal_id, category))
            except LocalStorageError as exc:
                logger.warning("Cursor load for %s failed, treating as unread: %s", category, exc)
                self._unloaded.add(category)
                continue
            self._unloaded.discard(category)
            self._merge(category, _parse_cursor(raw))

    @property
    def cursors(self) -> Mapping[NotificationCategory, datetime]:
        return MappingProxyType(self._cursors)

    @property
    def flag_reads(self) -> frozenset[EventKey]:
        return frozenset(self._flag_reads)

    def cursor(self, category: NotificationCategory) -> datetime:
        return self._cursors.get(category, EPOCH)

    def is_unread(self, event: NotificationEvent) -> bool:
        return is_unread(event, self._cursors, self._flag_reads)

    async def advance(self, category: NotificationCategory, timestamp: datetime) -> bool:
        """Move the cursor to ``max(cursor, timestamp)``. Returns True if it moved."""
        if not self._merge(category, timestamp):
            return False
        await self._persist(category)
        return True

    def mark_flag_read(self, key: EventKey) -> bool:
        if key in self._flag_reads:
            return False
        self._flag_reads.add(key)
        self.version += 1
        return True

    def reconcile(self, category: NotificationCategory, events: Iterable[NotificationEvent]) -> None:
        """Drop optimistic reads the snapshot confirms or no longer contains."""
        current = {e.key: e for e in events if e.category == category}
        stale = {
            key for key in self._flag_reads
            if key[0] == category and (key not in current or current[key].owned_read_flag)
        }
        if stale:
            self._flag_reads -= stale
            self.version += 1

    def _merge(self, category: NotificationCategory, timestamp: datetime) -> bool:
        # Never regress a cursor, whichever side the newer value came from
        if timestamp <= self.cursor(category):
            return False
        self._cursors[category] = timestamp
        self.version += 1
        return True

    async def _persist(self, category: NotificationCategory) -> None:
        key = last_seen_key(self.principal_id, category)
        try:
            if category in self._unloaded:
                # The stored cursor was never read; fold it in before overwriting
                self._merge(category, _parse_cursor(await self._storage.get(key)))
                self._unloaded.discard(category)
            await self._storage.set(key, _serialize_cursor(self._cursors[category]))
        except LocalStorageError as exc:
            logger.warning("Cursor persist for %s failed, kept in memory: %s", category, exc)
