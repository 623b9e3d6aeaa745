"""
Process a grouped Alertmanager delivery.

Entry point invoked once per delivered batch. The caller has already looked
up the receiver configuration for the webhook token. No retries: a failure
surfaces to the scheduler that delivered the batch.
"""

import logging
from datetime import datetime

from alert_receiver.db.session import async_session_maker
from alert_receiver.schemas.alert import ReceiverConfig, ReconcileOptions
from alert_receiver.services.alert_counts import AlertCountsPublisher
from alert_receiver.services.batch import AlertBatch
from alert_receiver.services.presentation import TopicReviser
from alert_receiver.services.reconciliation import BatchReport, ReconciliationService
from alert_receiver.services.topic_lock import TopicLockRegistry
from alert_receiver.services.topic_store import SQLAlchemyTopicStore, TopicStore

logger = logging.getLogger(__name__)


async def process_grouped_alerts(
    receiver: ReceiverConfig | dict,
    data: str | bytes | list,
    graph_url: str,
    logs_url: str | None = None,
    grafana_url: str | None = None,
    *,
    reviser: TopicReviser,
    store: TopicStore | None = None,
    locks: TopicLockRegistry | None = None,
    publisher: AlertCountsPublisher | None = None,
    now: datetime | None = None,
) -> BatchReport:
    """Decode the delivered batch and reconcile it against all open topics."""
    if isinstance(receiver, dict):
        receiver = ReceiverConfig.model_validate(receiver)

    batch = AlertBatch(data)
    options = ReconcileOptions(graph_url=graph_url, logs_url=logs_url, grafana_url=grafana_url)

    service = ReconciliationService(
        store=store or SQLAlchemyTopicStore(async_session_maker),
        reviser=reviser,
        locks=locks,
        publisher=publisher,
    )

    logger.debug("Processing alert batch for graph %s", options.graph_url)
    return await service.reconcile_batch(receiver, batch, options, now=now)
