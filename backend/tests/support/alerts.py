"""Builders for topics, stored alerts and Alertmanager records used across tests."""

from datetime import UTC, datetime

from alert_receiver.models.topic import (
    ALERT_HISTORY_CUSTOM_FIELD,
    ALERT_HISTORY_VERSION_CUSTOM_FIELD,
    Topic,
)

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
GRAPH_URL = "http://prometheus.example.com/graph?g0.expr=node_cpu"


def make_topic(topic_id: int, alerts: list[dict] | None, **custom_fields) -> Topic:
    """Build a detached topic; ``alerts=None`` means no alert history at all."""
    fields = dict(custom_fields)
    if alerts is not None:
        fields[ALERT_HISTORY_CUSTOM_FIELD] = {"alerts": alerts}
    return Topic(
        id=topic_id,
        title="",
        closed=False,
        archived=False,
        firing=False,
        custom_fields=fields,
    )


def active_alert(alert_id: str, alertname: str = "cpu_high", state: str = "active", **annotations) -> dict:
    return {
        "labels": {"id": alert_id, "alertname": alertname},
        "status": {"state": state, "silencedBy": [], "inhibitedBy": []},
        "annotations": annotations,
    }


def stored_alert(alert_id: str, status: str = "firing", starts_at: datetime = T0, **extra) -> dict:
    alert = {
        "id": alert_id,
        "status": status,
        "starts_at": starts_at.isoformat(),
        "graph_url": GRAPH_URL,
    }
    alert.update(extra)
    return alert


class InMemoryTopicStore:
    """TopicStore keeping topics in a dict, recording every save."""

    def __init__(self, topics: list[Topic] | None = None):
        self.topics = {t.id: t for t in topics or []}
        self.saves: list[tuple[int, list[dict], bool]] = []

    def _open(self) -> list[Topic]:
        return [
            t for t in self.topics.values()
            if not t.closed and not t.archived and ALERT_HISTORY_CUSTOM_FIELD in t.custom_fields
        ]

    async def list_open_topics(self) -> list[Topic]:
        return self._open()

    async def load_topic(self, topic_id: int) -> Topic | None:
        return self.topics.get(topic_id)

    async def save_alert_history(self, topic_id: int, alerts: list[dict], firing: bool) -> None:
        topic = self.topics[topic_id]
        fields = dict(topic.custom_fields)
        fields[ALERT_HISTORY_CUSTOM_FIELD] = {"alerts": alerts}
        fields[ALERT_HISTORY_VERSION_CUSTOM_FIELD] = 2
        topic.custom_fields = fields
        topic.firing = firing
        self.saves.append((topic_id, alerts, firing))

    async def count_firing_topics(self) -> int:
        return sum(1 for t in self._open() if t.firing)

    async def count_open_topics(self) -> int:
        return len(self._open())
