"""
Timestamp Normalizer
Converts the timestamp shapes found in stored records into aware UTC datetimes.

Records written by different clients over the years carry their timestamps as
native Firestore timestamps, serialized ``{_seconds, _nanoseconds}`` pairs,
ISO strings or epoch milliseconds. Everything downstream (sorting, date
ranges, dashboard buckets) works on the value returned by ``to_datetime``.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, Optional
from zoneinfo import ZoneInfo
import logging

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Zero-argument conversion methods exposed by timestamp-like objects
_CONVERSION_METHODS = ("to_datetime", "ToDatetime", "toDate")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_seconds_pair(value: Dict[str, Any]) -> Optional[datetime]:
    seconds = value.get("_seconds", value.get("seconds"))
    if seconds is None:
        return None
    nanos = value.get("_nanoseconds", value.get("nanoseconds", value.get("nanos"))) or 0
    try:
        return EPOCH + timedelta(seconds=int(seconds), microseconds=int(nanos) // 1000)
    except (TypeError, ValueError, OverflowError):
        return None


def _from_string(value: str) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        logger.debug(f"Unparseable timestamp string: {value!r}")
        return None


def to_datetime(value: Any) -> Optional[datetime]:
    """Normalize any supported timestamp representation; None if it cannot be read."""
    if value is None or value == "":
        return None

    # DatetimeWithNanoseconds is a datetime subclass
    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    for method_name in _CONVERSION_METHODS:
        method = getattr(value, method_name, None)
        if callable(method):
            try:
                converted = method()
            except Exception as e:
                logger.debug(f"{method_name}() failed on timestamp {value!r}: {e}")
                return None
            return to_datetime(converted)

    if isinstance(value, dict):
        return _from_seconds_pair(value)

    if isinstance(value, str):
        return _from_string(value)

    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            return EPOCH + timedelta(milliseconds=value)
        except (OverflowError, ValueError):
            # NaN and out-of-range epoch values
            return None

    return None


def to_iso(value: Any) -> Optional[str]:
    converted = to_datetime(value)
    return converted.isoformat() if converted else None


def record_time(record: Dict[str, Any], field: str = "timestamp", fallback: str = "createdAt") -> Optional[datetime]:
    """Timestamp of a record, falling back to its creation time."""
    return to_datetime(record.get(field)) or to_datetime(record.get(fallback))


def serialize_document(doc: Dict[str, Any], fields: Iterable[str] = ("timestamp", "createdAt")) -> Dict[str, Any]:
    """
    Copy of ``doc`` with timestamp fields rendered as ISO strings for JSON.

    Named ``fields`` are always converted (unreadable values become None);
    any other key containing "time" or "date" is converted only when it
    parses, so free-text fields that happen to match are left alone.
    """
    out = dict(doc)
    named = set(fields)
    for key, value in doc.items():
        if key in named:
            out[key] = to_iso(value)
        elif "time" in key.lower() or "date" in key.lower():
            converted = to_iso(value) if not isinstance(value, (int, float)) else None
            if converted:
                out[key] = converted
    return out


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def local_today(tz: ZoneInfo, now: Optional[datetime] = None) -> date:
    """Calendar date in ``tz`` at ``now``."""
    current = _as_utc(now) if now else now_utc()
    return current.astimezone(tz).date()


def start_of_day(tz: ZoneInfo, now: Optional[datetime] = None) -> datetime:
    """Local midnight in ``tz`` for the day containing ``now``, as aware UTC."""
    today = local_today(tz, now)
    return datetime.combine(today, time.min, tzinfo=tz).astimezone(timezone.utc)
