"""Inputs for re-rendering a topic after its alert history changed."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from alert_receiver.models.topic import (
    PREVIOUS_TOPIC_CUSTOM_FIELD,
    TOPIC_BASE_TITLE_CUSTOM_FIELD,
    TOPIC_BODY_CUSTOM_FIELD,
    TOPIC_TITLE_CUSTOM_FIELD,
    Topic,
)
from alert_receiver.schemas.alert import ReceiverConfig, StoredAlert

FIRING = "firing"


def is_firing(status: str | None) -> bool:
    return status == FIRING


def datacenters(alerts: list[StoredAlert]) -> list[str]:
    """Distinct datacenters of the history, in first-seen order."""
    seen: dict[str, None] = {}
    for alert in alerts:
        if alert.datacenter:
            seen.setdefault(alert.datacenter, None)
    return list(seen)


@dataclass
class TopicRevision:
    """Everything the host needs to re-render a topic's title and first post."""

    topic_id: int
    receiver: ReceiverConfig
    alert_history: list[dict[str, Any]]
    firing: bool
    datacenters: list[str] = field(default_factory=list)
    base_title: str | None = None
    title: str = ""
    topic_body: str = ""
    previous_topic_id: int | None = None


class TopicReviser(Protocol):
    """Host collaborator that renders and saves the topic title and post body.

    With ``base_title`` present (even empty) the title is generated from it and
    the history; otherwise ``title`` is used as is.
    """

    async def revise_topic(self, revision: TopicRevision) -> None: ...


def build_revision(
    topic: Topic,
    receiver: ReceiverConfig,
    alerts: list[StoredAlert],
) -> TopicRevision:
    base_title = topic.custom_field(TOPIC_BASE_TITLE_CUSTOM_FIELD)
    return TopicRevision(
        topic_id=topic.id,
        receiver=receiver,
        alert_history=[a.to_history_entry() for a in alerts],
        firing=any(is_firing(a.status) for a in alerts),
        datacenters=datacenters(alerts),
        base_title=base_title,
        title="" if base_title is not None else topic.custom_field(TOPIC_TITLE_CUSTOM_FIELD) or "",
        topic_body=topic.custom_field(TOPIC_BODY_CUSTOM_FIELD) or "",
        previous_topic_id=topic.custom_field(PREVIOUS_TOPIC_CUSTOM_FIELD),
    )
