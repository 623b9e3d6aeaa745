"""
Alertmanager batch decoding.

Two wire shapes are accepted:
- grouped: {{alertmanager}}/api/v1/alerts/grouped (removed in Alertmanager v0.16.0),
  a list of groups each holding ``blocks`` of ``alerts``
- flat: {{alertmanager}}/api/v1/alerts, a list of alerts
"""

import json
import logging
from functools import cached_property
from typing import Any

from pydantic import ValidationError

from alert_receiver.core.exceptions import InputDecodeError
from alert_receiver.schemas.alert import ActiveAlert

logger = logging.getLogger(__name__)


def decode_payload(data: str | bytes | list) -> list:
    """Parse the raw batch into a JSON list. Already-decoded lists pass through."""
    if isinstance(data, list):
        return data

    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise InputDecodeError(f"malformed JSON: {e}") from e

    if not isinstance(payload, list):
        raise InputDecodeError(f"expected a JSON list, got {type(payload).__name__}")
    return payload


def is_grouped(payload: list) -> bool:
    return bool(payload) and isinstance(payload[0], dict) and "blocks" in payload[0]


def flatten_grouped(payload: list) -> list[Any]:
    """Concatenate ``group.blocks[].alerts`` across all groups, in order."""
    alerts: list[Any] = []
    try:
        for group in payload:
            for block in group["blocks"]:
                alerts.extend(block["alerts"])
    except (KeyError, TypeError) as e:
        raise InputDecodeError(f"grouped payload missing blocks/alerts: {e}") from e
    return alerts


class AlertBatch:
    """A decoded Alertmanager snapshot.

    ``alerts`` is computed once per batch; every topic reconciled in the same
    invocation sees the same tuple.
    """

    def __init__(self, data: str | bytes | list):
        self.payload = decode_payload(data)

    @cached_property
    def alerts(self) -> tuple[ActiveAlert, ...]:
        records = flatten_grouped(self.payload) if is_grouped(self.payload) else self.payload

        try:
            alerts = tuple(ActiveAlert.model_validate(record) for record in records)
        except ValidationError as e:
            raise InputDecodeError(f"invalid alert record: {e.error_count()} validation error(s)") from e

        logger.debug(
            "Normalized %d active alerts (%s format)",
            len(alerts),
            "grouped" if is_grouped(self.payload) else "flat",
        )
        return alerts
