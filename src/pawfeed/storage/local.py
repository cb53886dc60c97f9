"""On-device durable key/value storage for read cursors and hidden sets."""

from __future__ import annotations

from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pawfeed.db.models.local_setting import LocalSettingRow
from pawfeed.errors.exceptions import LocalStorageError
from pawfeed.models.enums import NotificationCategory


def last_seen_key(principal_id: str, category: NotificationCategory) -> str:
    return f"pawfeed:{principal_id}:last_seen:{category.value}"


def hidden_key(principal_id: str, category: NotificationCategory) -> str:
    return f"pawfeed:{principal_id}:hidden:{category.value}"


class KeyValueStorage(ABC):
    """String key/value persistence. Implementations raise LocalStorageError on failure."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...


class SqlKeyValueStorage(KeyValueStorage):
    """Key/value storage in a local SQLAlchemy database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(LocalSettingRow, key)
        except SQLAlchemyError as exc:
            raise LocalStorageError(f"Read of '{key}' failed", {"error": str(exc)}) from exc
        return row.value if row else None

    async def set(self, key: str, value: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.merge(LocalSettingRow(key=key, value=value))
                await session.commit()
        except SQLAlchemyError as exc:
            raise LocalStorageError(f"Write of '{key}' failed", {"error": str(exc)}) from exc
