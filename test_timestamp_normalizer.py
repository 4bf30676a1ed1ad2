from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from safetyapp.services.timestamp_normalizer import (
    local_today,
    serialize_document,
    start_of_day,
    to_datetime,
    to_iso,
)

BANGKOK = ZoneInfo("Asia/Bangkok")


class FirestoreLikeTimestamp:
    def __init__(self, moment):
        self._moment = moment

    def to_datetime(self):
        return self._moment


class JsLikeTimestamp:
    def __init__(self, moment):
        self._moment = moment

    def toDate(self):
        return self._moment


def test_empty_values_are_none():
    assert to_datetime(None) is None
    assert to_datetime("") is None
    assert to_datetime("not a date") is None
    assert to_datetime(True) is None


def test_naive_datetime_is_treated_as_utc():
    assert to_datetime(datetime(2024, 5, 1, 8, 30)) == datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)


def test_aware_datetime_is_converted_to_utc():
    moment = datetime(2024, 5, 1, 15, 0, tzinfo=BANGKOK)
    assert to_datetime(moment) == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def test_seconds_pair_mapping():
    value = {"_seconds": 1714550400, "_nanoseconds": 500_000_000}
    assert to_datetime(value) == datetime(2024, 5, 1, 8, 0, 0, 500000, tzinfo=timezone.utc)
    assert to_datetime({"seconds": 1714550400}) == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def test_objects_with_conversion_methods():
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert to_datetime(FirestoreLikeTimestamp(moment)) == moment
    assert to_datetime(JsLikeTimestamp(moment)) == moment


def test_native_timestamp_and_serialized_pair_agree():
    moment = datetime(2024, 5, 1, 8, 0, 0, 123456, tzinfo=timezone.utc)
    pair = {"_seconds": int(moment.timestamp()), "_nanoseconds": moment.microsecond * 1000}
    assert abs(to_datetime(FirestoreLikeTimestamp(moment)) - to_datetime(pair)) <= timedelta(milliseconds=1)


def test_iso_strings():
    assert to_datetime("2024-05-01T08:00:00Z") == datetime(2024, 5, 1, 8, tzinfo=timezone.utc)
    assert to_datetime("2024-05-01T15:00:00+07:00") == datetime(2024, 5, 1, 8, tzinfo=timezone.utc)
    assert to_datetime("2024-05-01") == datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_numbers_are_epoch_milliseconds():
    assert to_datetime(1714550400000) == datetime(2024, 5, 1, 8, tzinfo=timezone.utc)
    assert to_datetime(float("nan")) is None
    assert to_datetime(float("inf")) is None


def test_date_becomes_midnight_utc():
    assert to_datetime(date(2024, 5, 1)) == datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_to_iso():
    assert to_iso({"_seconds": 0}) == "1970-01-01T00:00:00+00:00"
    assert to_iso(None) is None


def test_serialize_document_converts_named_and_date_like_fields():
    doc = {
        "timestamp": {"_seconds": 0},
        "createdAt": "garbage",
        "expirationDate": "2025-01-31",
        "updateDateNote": "see remark",
        "checkTime": 5,
        "remark": "ok",
    }
    out = serialize_document(doc)
    assert out["timestamp"] == "1970-01-01T00:00:00+00:00"
    assert out["createdAt"] is None
    assert out["expirationDate"] == "2025-01-31T00:00:00+00:00"
    assert out["updateDateNote"] == "see remark"
    assert out["checkTime"] == 5
    assert out["remark"] == "ok"
    # the input is left untouched
    assert doc["timestamp"] == {"_seconds": 0}


def test_local_today_crosses_midnight_in_zone():
    # 18:30 UTC is already the next day in Bangkok
    now = datetime(2024, 5, 1, 18, 30, tzinfo=timezone.utc)
    assert local_today(BANGKOK, now) == date(2024, 5, 2)
    assert start_of_day(BANGKOK, now) == datetime(2024, 5, 1, 17, 0, tzinfo=timezone.utc)


def test_start_of_day_is_before_now():
    now = datetime(2024, 5, 1, 2, 0, tzinfo=timezone.utc)
    assert now - start_of_day(BANGKOK, now) < timedelta(days=1)
