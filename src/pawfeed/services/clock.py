"""Timestamp helpers shared by feed normalization and comment parsing."""

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime:
    """Coerce a stored creation time into an aware UTC datetime.

    Accepts datetimes, epoch milliseconds and ISO-8601 strings. Anything
    missing or unparseable becomes EPOCH so the item still renders, sorted last.
    """
    if value is None or isinstance(value, bool):
        return EPOCH
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)):
        return from_epoch_ms(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return EPOCH
        try:
            return from_epoch_ms(float(text))
        except ValueError:
            pass
        try:
            return parse_timestamp(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return EPOCH
    return EPOCH


def from_epoch_ms(value: float) -> datetime:
    try:
        return EPOCH + timedelta(milliseconds=float(value))
    except (OverflowError, OSError, ValueError):
        return EPOCH
