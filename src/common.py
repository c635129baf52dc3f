import uuid
from datetime import date, datetime, timezone
from typing import Any

TOURNAMENT_STATUSES = ("upcoming", "active", "completed", "cancelled")

FINAL_ROUND = "final"
THIRD_PLACE_ROUNDS = ("third-place", "bronze-match")


def generate_id():
    return uuid.uuid4().hex[:20]


def is_final(round_name: str) -> bool:
    return round_name == FINAL_ROUND


def is_third_place(round_name: str) -> bool:
    return round_name in THIRD_PLACE_ROUNDS


def _from_epoch(seconds: float) -> datetime:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp out of range: {seconds!r}") from exc


def to_datetime(value: Any) -> datetime:
    """Normalize a timestamp to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC), dates, ISO-8601 strings,
    epoch seconds and the structured ``{"seconds": .., "nanoseconds": ..}``
    form (also with leading underscores) some document stores return.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        if seconds is None:
            raise ValueError(f"timestamp mapping without seconds: {value!r}")
        try:
            return _from_epoch(int(seconds) + int(nanos) / 1e9)
        except TypeError as exc:
            raise ValueError(f"not a timestamp: {value!r}") from exc
    if isinstance(value, bool):
        raise ValueError(f"not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return to_datetime(datetime.fromisoformat(text))
    raise ValueError(f"not a timestamp: {value!r}")
