"""Abstract remote document store and its query/subscription primitives."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from pawfeed.services.clock import parse_timestamp

logger = logging.getLogger(__name__)

Document = dict[str, Any]
SnapshotCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]


@dataclass(frozen=True)
class QueryFilter:
    field: str
    op: Literal["==", "!=", "in"]
    value: Any

    def matches(self, doc: Document) -> bool:
        actual = doc.get(self.field)
        if self.op == "==":
            return actual == self.value
        if self.op == "!=":
            return actual != self.value
        if self.op == "in":
            return actual in self.value
        raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class DocumentQuery:
    """A filtered, timestamp-ordered, limited query against one collection.

    ``order_by`` names a field whose values are compared as timestamps, so
    datetimes, epoch milliseconds and ISO strings sort together.
    """

    collection: str
    filters: tuple[QueryFilter, ...] = ()
    order_by: str | None = None
    descending: bool = True
    limit: int | None = None

    def where(self, field_name: str, op: str, value: Any) -> DocumentQuery:
        return DocumentQuery(
            collection=self.collection,
            filters=self.filters + (QueryFilter(field_name, op, value),),
            order_by=self.order_by,
            descending=self.descending,
            limit=self.limit,
        )

    def apply(self, docs: list[Document]) -> list[Document]:
        """Filter, order and limit an unordered collection scan."""
        matched = [d for d in docs if all(f.matches(d) for f in self.filters)]
        if self.order_by:
            matched.sort(
                key=lambda d: (parse_timestamp(d.get(self.order_by)), str(d.get("id", ""))),
                reverse=self.descending,
            )
        if self.limit is not None:
            matched = matched[: self.limit]
        return matched


@dataclass(frozen=True)
class ArrayUnion:
    """Update sentinel: add values to an array field, skipping ones already present."""

    values: tuple[Any, ...]


@dataclass(frozen=True)
class ArrayRemove:
    """Update sentinel: remove every occurrence of values from an array field."""

    values: tuple[Any, ...]


def apply_field_updates(data: Document, fields: Document) -> Document:
    """Return a copy of ``data`` with ``fields`` merged in, resolving array sentinels."""
    merged = dict(data)
    for key, value in fields.items():
        if isinstance(value, ArrayUnion):
            current = list(merged.get(key) or [])
            for item in value.values:
                if item not in current:
                    current.append(item)
            merged[key] = current
        elif isinstance(value, ArrayRemove):
            merged[key] = [v for v in (merged.get(key) or []) if v not in value.values]
        else:
            merged[key] = value
    return merged


@dataclass
class Subscription:
    """Handle returned by ``DocumentStore.subscribe``. ``unsubscribe`` is idempotent."""

    _teardown: Callable[[], None]
    active: bool = field(default=True)

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._teardown()


class DocumentStore(ABC):
    """Managed document database with real-time full-snapshot subscriptions."""

    @abstractmethod
    async def subscribe(
        self,
        query: DocumentQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        """Open a live query.

        ``on_snapshot`` receives the complete current result set after every
        change to the collection, never a delta. Query failures go to
        ``on_error`` and never propagate to the caller.
        """
        ...

    @abstractmethod
    async def query(self, query: DocumentQuery) -> list[Document]:
        ...

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document | None:
        ...

    @abstractmethod
    async def add(self, collection: str, data: Document, doc_id: str | None = None) -> str:
        """Create a document and return its id."""
        ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        """Merge ``fields`` into an existing document. Missing documents raise NotFoundError."""
        ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""
        ...
