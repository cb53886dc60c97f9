"""SQLAlchemy ORM models - import all to register with their metadata."""

from pawfeed.db.models.document import DocumentRow
from pawfeed.db.models.local_setting import LocalSettingRow

__all__ = [
    "DocumentRow",
    "LocalSettingRow",
]
