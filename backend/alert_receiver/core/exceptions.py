"""Custom exceptions for the alert receiver."""


class AlertReceiverError(Exception):
    """Base class for reconciliation failures."""


class InputDecodeError(AlertReceiverError):
    """Raised when an Alertmanager batch cannot be decoded into active alerts."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid alert batch: {reason}")


class TimestampParseError(AlertReceiverError):
    """Raised when a stored alert's starts_at cannot be parsed."""

    def __init__(self, alert_id: str | None, value: object):
        self.alert_id = alert_id
        self.value = value
        super().__init__(f"Unparseable starts_at {value!r} for stored alert {alert_id!r}")


class PersistenceError(AlertReceiverError):
    """Raised when the topic store fails to read or write alert history."""

    def __init__(self, topic_id: int | None, reason: str = "unknown"):
        self.topic_id = topic_id
        self.reason = reason
        super().__init__(f"Topic store failure for topic {topic_id}: {reason}")
