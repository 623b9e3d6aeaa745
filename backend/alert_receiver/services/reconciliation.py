"""
Alert history reconciliation.

Merges one decoded Alertmanager snapshot into the alert history of every open
topic:
- stored alerts that vanished for longer than the stale duration become "stale"
- stored alerts whose active counterpart changed state take the new state
- logs_url is filled in once, grafana_url follows the active alert

Each topic is reconciled under its own lock. Only a cycle that changed a
status persists the history, revises the topic and broadcasts new counts,
so redelivering the same snapshot is a no-op.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import ValidationError

from alert_receiver.core.config import settings
from alert_receiver.core.exceptions import PersistenceError
from alert_receiver.schemas.alert import ActiveAlert, ReceiverConfig, ReconcileOptions, StoredAlert
from alert_receiver.services.alert_counts import AlertCountsPublisher
from alert_receiver.services.batch import AlertBatch
from alert_receiver.services.matching import (
    find_active_alert,
    get_grafana_dashboard_url,
    in_scope,
    normalize_status,
)
from alert_receiver.services.presentation import TopicReviser, build_revision, is_firing
from alert_receiver.services.staleness import STALE, STALE_DURATION, is_stale
from alert_receiver.services.topic_lock import TopicLockRegistry
from alert_receiver.services.topic_store import TopicStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertChange:
    alert_id: str | None
    old_status: str | None
    new_status: str | None


@dataclass
class ReconciliationResult:
    alerts: list[StoredAlert]
    updated: bool = False
    changes: list[AlertChange] = field(default_factory=list)


def reconcile_topic_alerts(
    stored_alerts: list[StoredAlert],
    active_alerts: Sequence[ActiveAlert],
    alertname: str,
    options: ReconcileOptions,
    now: datetime,
    stale_after: timedelta = STALE_DURATION,
) -> ReconciliationResult:
    """
    Merge the active snapshot into one topic's stored alerts.

    Stored alerts are mutated in place and keep their order. Only status
    transitions set ``updated``; logs_url and grafana_url refreshes ride
    along with the next persisted change.

    Raises:
        TimestampParseError: an unmatched stored alert has an unparseable starts_at
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    result = ReconciliationResult(alerts=stored_alerts)

    for stored in stored_alerts:
        if options.logs_url and stored.logs_url is None:
            stored.logs_url = options.logs_url

        if not in_scope(stored, options.graph_url):
            continue

        active = find_active_alert(stored, active_alerts, alertname)

        grafana_dashboard_url = get_grafana_dashboard_url(active, options.grafana_url)
        if grafana_dashboard_url:
            stored.grafana_url = grafana_dashboard_url

        if active is None:
            if is_stale(stored, now, stale_after):
                result.changes.append(AlertChange(stored.id, stored.status, STALE))
                stored.status = STALE
                result.updated = True
        else:
            status = normalize_status(active.status.state)
            if stored.status != status:
                result.changes.append(AlertChange(stored.id, stored.status, status))
                stored.status = status
                stored.description = active.description
                result.updated = True

    return result


class TopicOutcome(str, Enum):
    SKIPPED = "skipped"
    UNCHANGED = "unchanged"
    UPDATED = "updated"


@dataclass
class BatchReport:
    topics_checked: int = 0
    topics_skipped: int = 0
    topics_updated: int = 0


class ReconciliationService:
    """Reconciles a decoded batch against every open alert topic."""

    def __init__(
        self,
        store: TopicStore,
        reviser: TopicReviser,
        locks: TopicLockRegistry | None = None,
        publisher: AlertCountsPublisher | None = None,
        stale_after: timedelta | None = None,
        max_concurrency: int | None = None,
    ):
        self.store = store
        self.reviser = reviser
        self.locks = locks or TopicLockRegistry()
        self.publisher = publisher or AlertCountsPublisher()
        if stale_after is None:
            stale_after = timedelta(minutes=settings.STALE_DURATION_MINUTES)
        self.stale_after = stale_after
        if max_concurrency is None:
            max_concurrency = settings.RECONCILE_MAX_CONCURRENCY
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency

    async def reconcile_batch(
        self,
        receiver: ReceiverConfig,
        batch: AlertBatch,
        options: ReconcileOptions,
        now: datetime | None = None,
    ) -> BatchReport:
        """
        Reconcile every open topic against the batch.

        The batch is normalized before any topic is touched, so a malformed
        batch aborts the whole invocation. The first topic failure propagates.
        """
        active_alerts = batch.alerts
        topics = await self.store.list_open_topics()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(topic_id: int) -> TopicOutcome:
            async with semaphore:
                return await self.reconcile_topic(receiver, topic_id, active_alerts, options, now)

        outcomes = await asyncio.gather(*(run(topic.id) for topic in topics))

        report = BatchReport(
            topics_checked=len(outcomes),
            topics_skipped=sum(1 for o in outcomes if o is TopicOutcome.SKIPPED),
            topics_updated=sum(1 for o in outcomes if o is TopicOutcome.UPDATED),
        )
        logger.info(
            "Reconciled %d active alerts against %d open topics (%d updated, %d skipped)",
            len(active_alerts),
            report.topics_checked,
            report.topics_updated,
            report.topics_skipped,
        )
        return report

    async def reconcile_topic(
        self,
        receiver: ReceiverConfig,
        topic_id: int,
        active_alerts: Sequence[ActiveAlert],
        options: ReconcileOptions,
        now: datetime | None = None,
    ) -> TopicOutcome:
        """Run one locked reconciliation cycle for a topic."""
        alertname = receiver.alertname_for(topic_id)
        if not alertname:
            logger.debug("Topic %s is not mapped by this receiver, skipping", topic_id)
            return TopicOutcome.SKIPPED

        async with self.locks.hold(topic_id):
            # Re-read under the lock; the listed snapshot may be outdated
            topic = await self.store.load_topic(topic_id)
            if topic is None:
                logger.debug("Topic %s vanished before reconciliation, skipping", topic_id)
                return TopicOutcome.SKIPPED

            try:
                stored_alerts = [StoredAlert.model_validate(a) for a in topic.alert_history]
            except ValidationError as e:
                raise PersistenceError(topic_id, f"malformed alert history: {e}") from e

            result = reconcile_topic_alerts(
                stored_alerts,
                active_alerts,
                alertname,
                options,
                now or datetime.now(UTC),
                self.stale_after,
            )
            if not result.updated:
                return TopicOutcome.UNCHANGED

            for change in result.changes:
                logger.info(
                    "Topic %s alert %s: %s -> %s",
                    topic_id,
                    change.alert_id,
                    change.old_status,
                    change.new_status,
                )

            await self.store.save_alert_history(
                topic_id,
                [a.to_history_entry() for a in result.alerts],
                firing=any(is_firing(a.status) for a in result.alerts),
            )
            await self.reviser.revise_topic(build_revision(topic, receiver, result.alerts))
            await self.publish_alert_counts()

            return TopicOutcome.UPDATED

    async def publish_alert_counts(self) -> None:
        firing_count = await self.store.count_firing_topics()
        open_count = await self.store.count_open_topics()
        await self.publisher.publish(firing_count, open_count)
