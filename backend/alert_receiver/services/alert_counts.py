"""
Redis pub/sub broadcast of alert topic counts.

Subscribers (site header badges, dashboards) refresh their firing/open
counters from these messages.
"""

import logging
from collections.abc import Awaitable, Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from alert_receiver.core.config import settings
from alert_receiver.core.redis import get_redis
from alert_receiver.schemas.alert import AlertCounts

logger = logging.getLogger(__name__)


class AlertCountsPublisher:
    """Publishes firing/open topic counts on the alert receiver channel."""

    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[Redis]] = get_redis,
        channel: str | None = None,
    ):
        self._redis_factory = redis_factory
        self.channel = channel or settings.ALERT_COUNTS_CHANNEL

    async def publish(self, firing_alerts_count: int, open_alerts_count: int) -> None:
        """
        Publish the current counts.

        Raises:
            RedisError: the broadcast could not be delivered to Redis
        """
        counts = AlertCounts(
            firing_alerts_count=firing_alerts_count,
            open_alerts_count=open_alerts_count,
        )
        redis = await self._redis_factory()
        try:
            await redis.publish(self.channel, counts.model_dump_json())
        except RedisError as e:
            logger.error("Failed to publish alert counts to %s: %s", self.channel, e)
            raise
        logger.debug(
            "Published alert counts to %s: firing=%d open=%d",
            self.channel,
            firing_alerts_count,
            open_alerts_count,
        )
