"""Pytest fixtures for backend tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from alert_receiver.schemas.alert import ReceiverConfig
from alert_receiver.services.alert_counts import AlertCountsPublisher
from alert_receiver.services.topic_lock import TopicLockRegistry


@pytest.fixture
def mock_redis():
    """Redis client whose locks acquire immediately and whose publish succeeds."""
    redis = MagicMock()
    redis.lock.side_effect = lambda *args, **kwargs: AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def redis_factory(mock_redis):
    async def factory():
        return mock_redis

    return factory


@pytest.fixture
def locks(redis_factory) -> TopicLockRegistry:
    return TopicLockRegistry(redis_factory=redis_factory, prefix="prom_alert_receiver_topic_")


@pytest.fixture
def publisher(redis_factory) -> AlertCountsPublisher:
    return AlertCountsPublisher(redis_factory=redis_factory, channel="/alert-receiver")


@pytest.fixture
def reviser():
    reviser = MagicMock()
    reviser.revise_topic = AsyncMock()
    return reviser


@pytest.fixture
def receiver() -> ReceiverConfig:
    return ReceiverConfig(topic_map={"cpu_high": 1, "disk_full": 2})
