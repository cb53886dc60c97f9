"""SQLAlchemy-backed document store with in-process change fan-out."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pawfeed.db.models.document import DocumentRow
from pawfeed.errors.exceptions import NotFoundError, RemoteStoreError
from pawfeed.services.id_generator import generate_id
from pawfeed.store.base import (
    Document,
    DocumentQuery,
    DocumentStore,
    ErrorCallback,
    SnapshotCallback,
    Subscription,
    apply_field_updates,
)

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    """Make a value JSON-column safe (datetimes become ISO strings)."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_encode(v) for v in value]
    return value


def _to_document(row: DocumentRow) -> Document:
    return {**(row.data or {}), "id": row.doc_id}


@dataclass
class _LiveQuery:
    query: DocumentQuery
    on_snapshot: SnapshotCallback
    on_error: ErrorCallback | None
    active: bool = field(default=True)


class SqlDocumentStore(DocumentStore):
    """Stores documents as JSON rows and re-runs live queries after every write.

    Filtering and ordering happen in Python over one collection scan so the
    same semantics hold on SQLite and on server databases.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._live: dict[str, list[_LiveQuery]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def query(self, query: DocumentQuery) -> list[Document]:
        try:
            async with self._session_factory() as session:
                stmt = select(DocumentRow).where(DocumentRow.collection == query.collection)
                rows = list((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise RemoteStoreError(
                f"Query on '{query.collection}' failed", {"error": str(exc)}
            ) from exc
        return query.apply([_to_document(r) for r in rows])

    async def get(self, collection: str, doc_id: str) -> Document | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(DocumentRow, (collection, doc_id))
        except SQLAlchemyError as exc:
            raise RemoteStoreError(
                f"Read of '{collection}/{doc_id}' failed", {"error": str(exc)}
            ) from exc
        return _to_document(row) if row else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add(self, collection: str, data: Document, doc_id: str | None = None) -> str:
        doc_id = doc_id or generate_id("doc_")
        payload = _encode({k: v for k, v in data.items() if k != "id"})
        try:
            async with self._session_factory() as session:
                await session.merge(DocumentRow(collection=collection, doc_id=doc_id, data=payload))
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(
                f"Write to '{collection}' failed", {"error": str(exc)}
            ) from exc
        await self._notify(collection)
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        try:
            async with self._session_factory() as session:
                row = await session.get(DocumentRow, (collection, doc_id))
                if row is None:
                    raise NotFoundError("Document", f"{collection}/{doc_id}")
                # Reassign so the JSON column registers the change
                row.data = _encode(apply_field_updates(row.data or {}, fields))
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(
                f"Update of '{collection}/{doc_id}' failed", {"error": str(exc)}
            ) from exc
        await self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    delete(DocumentRow).where(
                        DocumentRow.collection == collection,
                        DocumentRow.doc_id == doc_id,
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(
                f"Delete of '{collection}/{doc_id}' failed", {"error": str(exc)}
            ) from exc
        await self._notify(collection)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def subscribe(
        self,
        query: DocumentQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        live = _LiveQuery(query, on_snapshot, on_error)
        self._live[query.collection].append(live)
        subscription = Subscription(lambda: self._drop(live))
        await self._push(live)
        return subscription

    def live_subscription_count(self, collection: str | None = None) -> int:
        if collection is not None:
            return len(self._live.get(collection, []))
        return sum(len(v) for v in self._live.values())

    def _drop(self, live: _LiveQuery) -> None:
        live.active = False
        queries = self._live.get(live.query.collection, [])
        if live in queries:
            queries.remove(live)

    async def _notify(self, collection: str) -> None:
        for live in list(self._live.get(collection, [])):
            await self._push(live)

    async def _push(self, live: _LiveQuery) -> None:
        try:
            docs = await self.query(live.query)
        except RemoteStoreError as exc:
            if live.on_error is not None:
                live.on_error(exc)
            else:
                logger.warning("Live query on %s failed: %s", live.query.collection, exc)
            return
        if not live.active:
            return
        try:
            live.on_snapshot(docs)
        except Exception:
            logger.exception("Snapshot listener on %s raised", live.query.collection)
