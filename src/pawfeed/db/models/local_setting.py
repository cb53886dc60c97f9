"""On-device key/value table (read cursors, hidden id sets)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pawfeed.db.base import LocalBase, TimestampMixin


class LocalSettingRow(LocalBase, TimestampMixin):
    __tablename__ = "local_settings"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
