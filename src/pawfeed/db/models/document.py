"""Remote document table: one row per document, grouped by collection."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from pawfeed.db.base import Base, TimestampMixin


class DocumentRow(Base, TimestampMixin):
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(100), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
