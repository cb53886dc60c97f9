"""Badge counter: unread totals derived from snapshots, cursors, hidden sets and flag reads."""

from collections.abc import Mapping, Sequence, Set
from datetime import datetime

from pawfeed.feed.read_state import is_unread
from pawfeed.models.enums import NotificationCategory
from pawfeed.models.notification import NotificationEvent

BADGE_CAP = 99


def unread_by_category(
    snapshots: Mapping[NotificationCategory, Sequence[NotificationEvent]],
    cursors: Mapping[NotificationCategory, datetime],
    hidden: Mapping[NotificationCategory, Set[str]],
    flag_reads: Set[tuple[NotificationCategory, str]],
) -> dict[NotificationCategory, int]:
    counts: dict[NotificationCategory, int] = {}
    for category, events in snapshots.items():
        hidden_ids = hidden.get(category, frozenset())
        counts[category] = sum(
            1
            for event in events
            if event.id not in hidden_ids and is_unread(event, cursors, flag_reads)
        )
    return counts


def compute_badge(
    snapshots: Mapping[NotificationCategory, Sequence[NotificationEvent]],
    cursors: Mapping[NotificationCategory, datetime],
    hidden: Mapping[NotificationCategory, Set[str]],
    flag_reads: Set[tuple[NotificationCategory, str]],
    cap: int = BADGE_CAP,
) -> int:
    """Unread visible events summed across categories, clamped to ``cap``."""
    total = sum(unread_by_category(snapshots, cursors, hidden, flag_reads).values())
    return min(cap, total)


def badge_label(total: int, cap: int = BADGE_CAP) -> str:
    """Display text for an unclamped unread total ("" when nothing is unread)."""
    if total <= 0:
        return ""
    if total > cap:
        return f"{cap}+"
    return str(total)
