"""Alert schemas for Alertmanager snapshots and stored topic history."""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class ActiveAlertStatus(BaseModel):
    """Alertmanager status block: state plus silence/inhibition details."""

    model_config = ConfigDict(extra="allow", frozen=True)

    state: str


class ActiveAlert(BaseModel):
    """An alert from the current Alertmanager snapshot."""

    model_config = ConfigDict(extra="allow", frozen=True)

    labels: dict[str, Any] = {}
    status: ActiveAlertStatus
    annotations: dict[str, Any] = {}

    @property
    def id(self) -> Any:
        return self.labels.get("id")

    @property
    def alertname(self) -> Any:
        return self.labels.get("alertname")

    @property
    def description(self) -> str | None:
        return self.annotations.get("description")


class StoredAlert(BaseModel):
    """One entry of a topic's persisted alert history.

    Keys this model does not know about are kept and written back untouched.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    status: str | None = None
    starts_at: str | None = None
    graph_url: str = ""
    logs_url: str | None = None
    grafana_url: str | None = None
    description: str | None = None
    datacenter: str | None = None

    def to_history_entry(self) -> dict[str, Any]:
        """Serialize with only the keys that were stored or assigned."""
        return self.model_dump(exclude_unset=True)


class ReceiverConfig(BaseModel):
    """Receiver configuration stored per webhook token."""

    model_config = ConfigDict(extra="allow")

    topic_map: dict[str, int] = {}
    category_id: int | None = None
    assignee_group: str | None = None

    def alertname_for(self, topic_id: int) -> str | None:
        """Reverse lookup of topic_map: first alertname mapped to the topic."""
        for alertname, mapped_id in self.topic_map.items():
            if mapped_id == topic_id:
                return alertname
        return None


class ReconcileOptions(BaseModel):
    graph_url: str
    logs_url: str | None = None
    grafana_url: str | None = None

    @field_validator("logs_url", "grafana_url")
    @classmethod
    def blank_as_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v


class AlertCounts(BaseModel):
    """Payload broadcast after a topic's alert history changed."""

    firing_alerts_count: int
    open_alerts_count: int
