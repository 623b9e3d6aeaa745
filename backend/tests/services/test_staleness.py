"""Tests for the staleness policy."""

from datetime import timedelta

import pytest

from alert_receiver.core.exceptions import TimestampParseError
from alert_receiver.schemas.alert import StoredAlert
from alert_receiver.services.staleness import STALE_DURATION, is_stale, parse_starts_at
from tests.support.alerts import T0, stored_alert


def stored(**overrides) -> StoredAlert:
    return StoredAlert.model_validate(stored_alert("a1", **overrides))


class TestParseStartsAt:
    def test_rfc3339_with_nanoseconds(self):
        alert = stored()
        alert.starts_at = "2024-03-01T12:00:00.123456789Z"
        assert parse_starts_at(alert).replace(microsecond=0) == T0

    def test_naive_timestamp_is_utc(self):
        alert = stored()
        alert.starts_at = "2024-03-01 12:00:00"
        assert parse_starts_at(alert) == T0

    def test_garbage_raises(self):
        alert = stored()
        alert.starts_at = "not a timestamp"
        with pytest.raises(TimestampParseError) as exc_info:
            parse_starts_at(alert)
        assert exc_info.value.alert_id == "a1"

    def test_missing_raises(self):
        alert = stored()
        alert.starts_at = None
        with pytest.raises(TimestampParseError):
            parse_starts_at(alert)


class TestIsStale:
    def test_default_threshold_is_five_minutes(self):
        assert STALE_DURATION == timedelta(minutes=5)

    def test_older_than_threshold(self):
        assert is_stale(stored(), T0 + timedelta(minutes=6)) is True

    def test_younger_than_threshold(self):
        assert is_stale(stored(), T0 + timedelta(minutes=4)) is False

    def test_exactly_at_threshold_is_not_stale(self):
        assert is_stale(stored(), T0 + timedelta(minutes=5)) is False

    def test_already_stale_is_not_reevaluated(self):
        alert = stored(status="stale", starts_at=T0)
        alert.starts_at = "not a timestamp"
        assert is_stale(alert, T0 + timedelta(hours=1)) is False

    def test_custom_threshold(self):
        assert is_stale(stored(), T0 + timedelta(minutes=2), threshold=timedelta(minutes=1)) is True
