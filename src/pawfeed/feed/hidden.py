"""Hidden-item store: per-category sets of locally dismissed event ids."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping

from pawfeed.errors.exceptions import LocalStorageError
from pawfeed.models.enums import NotificationCategory
from pawfeed.storage.local import KeyValueStorage, hidden_key

logger = logging.getLogger(__name__)


def _parse_ids(raw: str | None) -> set[str]:
    if not raw:
        return set()
    try:
        ids = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unparseable hidden set %r", raw[:80])
        return set()
    if not isinstance(ids, list):
        return set()
    return {str(i) for i in ids}


class HiddenItemStore:
    """Local hidden state is authoritative for presentation, whatever the remote still holds.

    ``version`` increases whenever a set grows.
    """

    def __init__(self, principal_id: str, storage: KeyValueStorage):
        self.principal_id = principal_id
        self._storage = storage
        self._hidden: dict[NotificationCategory, set[str]] = {}
        self._unloaded: set[NotificationCategory] = set()
        self.version = 0

    async def load(self, categories: Iterable[NotificationCategory]) -> None:
        """Read persisted hidden sets. A failed read behaves as nothing hidden."""
        for category in categories:
            current = self._hidden.setdefault(category, set())
            try:
                raw = await self._storage.get(hidden_key(self.principal_id, category))
            except LocalStorageError as exc:
                logger.warning("Hidden set load for %s failed, treating as empty: %s", category, exc)
                self._unloaded.add(category)
                continue
            self._unloaded.discard(category)
            self._union(current, _parse_ids(raw))

    @property
    def sets(self) -> Mapping[NotificationCategory, frozenset[str]]:
        return {category: frozenset(ids) for category, ids in self._hidden.items()}

    def hidden_ids(self, category: NotificationCategory) -> frozenset[str]:
        return frozenset(self._hidden.get(category, ()))

    def is_hidden(self, category: NotificationCategory, event_id: str) -> bool:
        return event_id in self._hidden.get(category, ())

    async def hide(self, category: NotificationCategory, event_id: str) -> bool:
        return await self.hide_many(category, [event_id]) > 0

    async def hide_many(self, category: NotificationCategory, event_ids: Iterable[str]) -> int:
        """Union ``event_ids`` into the category's set. Returns how many were new."""
        current = self._hidden.setdefault(category, set())
        added = self._union(current, {str(i) for i in event_ids})
        if not added:
            return 0
        await self._persist(category)
        return added

    def _union(self, current: set[str], ids: set[str]) -> int:
        added = ids - current
        if added:
            current.update(added)
            self.version += 1
        return len(added)

    async def _persist(self, category: NotificationCategory) -> None:
        key = hidden_key(self.principal_id, category)
        current = self._hidden.setdefault(category, set())
        try:
            if category in self._unloaded:
                # The stored set was never read; keep its ids when rewriting it
                self._union(current, _parse_ids(await self._storage.get(key)))
                self._unloaded.discard(category)
            await self._storage.set(key, json.dumps(sorted(current)))
        except LocalStorageError as exc:
            logger.warning("Hidden set persist for %s failed, kept in memory: %s", category, exc)
