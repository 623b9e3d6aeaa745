"""Staleness policy for stored alerts that vanished from the active snapshot."""

from datetime import UTC, datetime, timedelta

from dateutil import parser as date_parser

from alert_receiver.core.exceptions import TimestampParseError
from alert_receiver.schemas.alert import StoredAlert

STALE = "stale"
STALE_DURATION = timedelta(minutes=5)


def parse_starts_at(stored: StoredAlert) -> datetime:
    """Parse starts_at; naive timestamps are UTC."""
    if not stored.starts_at:
        raise TimestampParseError(stored.id, stored.starts_at)

    try:
        starts_at = date_parser.isoparse(stored.starts_at)
    except (ValueError, OverflowError):
        try:
            starts_at = date_parser.parse(stored.starts_at)
        except (ValueError, OverflowError) as e:
            raise TimestampParseError(stored.id, stored.starts_at) from e

    if starts_at.tzinfo is None:
        starts_at = starts_at.replace(tzinfo=UTC)
    return starts_at


def is_stale(
    stored: StoredAlert,
    now: datetime,
    threshold: timedelta = STALE_DURATION,
) -> bool:
    """
    Decide whether an unmatched stored alert should be marked stale.

    Callers only ask for alerts with no active match. Alerts already stale
    are never re-evaluated, so starts_at is not parsed for them.
    """
    if stored.status == STALE:
        return False
    return now - threshold > parse_starts_at(stored)
