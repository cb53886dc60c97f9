"""Unified timeline merger.

Pure and I/O free: rerun on every upstream push. Each category snapshot is a
full replacement, so the merge never carries state between calls.
"""

from collections.abc import Mapping, Sequence, Set

from pawfeed.models.enums import NotificationCategory
from pawfeed.models.notification import NotificationEvent

CATEGORY_PRIORITY: dict[NotificationCategory, int] = {
    category: index for index, category in enumerate(NotificationCategory)
}


def _sort_key(event: NotificationEvent) -> tuple[float, int, str]:
    return (-event.timestamp.timestamp(), CATEGORY_PRIORITY[event.category], event.id)


def merge_timeline(
    snapshots: Mapping[NotificationCategory, Sequence[NotificationEvent]],
    hidden: Mapping[NotificationCategory, Set[str]],
    category: NotificationCategory | None = None,
) -> list[NotificationEvent]:
    """Concatenate, drop hidden and duplicate ``(category, id)`` pairs, sort newest first.

    Ties on timestamp fall back to category priority, then id. ``category``
    restricts the output to one category; ``None`` means all.
    """
    merged: list[NotificationEvent] = []
    seen: set[tuple[NotificationCategory, str]] = set()
    for snapshot_category, events in snapshots.items():
        if category is not None and snapshot_category != category:
            continue
        hidden_ids = hidden.get(snapshot_category, frozenset())
        for event in events:
            if event.id in hidden_ids or event.key in seen:
                continue
            seen.add(event.key)
            merged.append(event)
    merged.sort(key=_sort_key)
    return merged


def parse_category_filter(value: str | None) -> NotificationCategory | None:
    """Map a filter chip value ("all", "", None or a category name) to a category."""
    if value is None or value.strip().lower() in ("", "all"):
        return None
    return NotificationCategory(value.strip().lower())
