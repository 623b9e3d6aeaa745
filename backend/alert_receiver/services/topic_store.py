"""
Topic store - reads and writes topic alert history in the host database.

The reconciliation service depends on the ``TopicStore`` protocol only;
``SQLAlchemyTopicStore`` is the Postgres-backed implementation.
"""

import logging
from typing import Any, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alert_receiver.core.exceptions import PersistenceError
from alert_receiver.models.topic import (
    ALERT_HISTORY_CUSTOM_FIELD,
    ALERT_HISTORY_VERSION,
    ALERT_HISTORY_VERSION_CUSTOM_FIELD,
    Topic,
)

logger = logging.getLogger(__name__)


class TopicStore(Protocol):
    async def list_open_topics(self) -> list[Topic]: ...

    async def load_topic(self, topic_id: int) -> Topic | None: ...

    async def save_alert_history(
        self, topic_id: int, alerts: list[dict[str, Any]], firing: bool
    ) -> None: ...

    async def count_firing_topics(self) -> int: ...

    async def count_open_topics(self) -> int: ...


def _open_topics_clause():
    return (
        Topic.closed.is_(False),
        Topic.archived.is_(False),
        Topic.custom_fields.has_key(ALERT_HISTORY_CUSTOM_FIELD),
    )


class SQLAlchemyTopicStore:
    """Topic store backed by the host's Postgres database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_open_topics(self) -> list[Topic]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Topic).where(*_open_topics_clause()).order_by(Topic.id)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceError(None, f"listing open topics failed: {e}") from e

    async def load_topic(self, topic_id: int) -> Topic | None:
        try:
            async with self._session_factory() as session:
                return await session.get(Topic, topic_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise PersistenceError(topic_id, f"loading topic failed: {e}") from e

    async def save_alert_history(
        self, topic_id: int, alerts: list[dict[str, Any]], firing: bool
    ) -> None:
        """Write the history, bump its format version and store the firing flag."""
        try:
            async with self._session_factory() as session:
                topic = await session.get(Topic, topic_id, with_for_update=True)
                if topic is None:
                    raise PersistenceError(topic_id, "topic disappeared")

                history = dict(topic.custom_fields.get(ALERT_HISTORY_CUSTOM_FIELD) or {})
                history["alerts"] = alerts

                # Reassign so the JSONB column is flagged dirty
                custom_fields = dict(topic.custom_fields)
                custom_fields[ALERT_HISTORY_CUSTOM_FIELD] = history
                custom_fields[ALERT_HISTORY_VERSION_CUSTOM_FIELD] = ALERT_HISTORY_VERSION
                topic.custom_fields = custom_fields
                topic.firing = firing

                await session.commit()
                logger.debug("Saved %d alerts for topic %s (firing=%s)", len(alerts), topic_id, firing)
        except SQLAlchemyError as e:
            raise PersistenceError(topic_id, f"saving alert history failed: {e}") from e

    async def count_firing_topics(self) -> int:
        return await self._count(Topic.firing.is_(True))

    async def count_open_topics(self) -> int:
        return await self._count()

    async def _count(self, *extra) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(func.count(Topic.id)).where(*_open_topics_clause(), *extra)
                )
                return result.scalar() or 0
        except SQLAlchemyError as e:
            raise PersistenceError(None, f"counting topics failed: {e}") from e
