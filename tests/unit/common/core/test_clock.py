from datetime import datetime, timedelta, timezone

from common.core.clock import as_utc, utc_now


def test_utc_now_is_aware():
    assert utc_now().tzinfo is not None


def test_as_utc_attaches_utc_to_naive_values():
    assert as_utc(datetime(2025, 1, 1, 8, 0)) == datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)


def test_as_utc_converts_other_offsets():
    plus_two = timezone(timedelta(hours=2))
    value = as_utc(datetime(2025, 1, 1, 10, 0, tzinfo=plus_two))
    assert value == datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)
    assert value.tzinfo == timezone.utc


def test_as_utc_passes_none_through():
    assert as_utc(None) is None
