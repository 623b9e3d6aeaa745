"""Topics that accumulate a Prometheus alert history."""

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from alert_receiver.db.base import Base, TimestampMixin

# Custom field keys stored on a topic
ALERT_HISTORY_CUSTOM_FIELD = "prom_alert_history"
ALERT_HISTORY_VERSION_CUSTOM_FIELD = "prom_alert_history_version"
TOPIC_BASE_TITLE_CUSTOM_FIELD = "prom_alert_base_title"
TOPIC_TITLE_CUSTOM_FIELD = "prom_alert_title"
TOPIC_BODY_CUSTOM_FIELD = "prom_alert_body"
PREVIOUS_TOPIC_CUSTOM_FIELD = "prom_alert_previous_topic"

ALERT_HISTORY_VERSION = 2


class Topic(Base, TimestampMixin):
    """Discussion topic owned by the host.

    The receiver only reads and writes the alert history stored in
    ``custom_fields`` and the derived ``firing`` flag.
    """

    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    firing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """True when any stored alert is firing"""

    custom_fields: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_topics_open_firing", "closed", "archived", "firing"),
    )

    @property
    def alert_history(self) -> list[dict]:
        history = (self.custom_fields or {}).get(ALERT_HISTORY_CUSTOM_FIELD) or {}
        return list(history.get("alerts") or [])

    def custom_field(self, key: str):
        return (self.custom_fields or {}).get(key)
