"""
Per-topic mutual exclusion.

Alert deliveries are external and may overlap, so a topic's
read-modify-write-notify cycle is serialized twice:
- within the process by an asyncio.Lock per key (Redis lock tokens are
  thread-local, not task-local, so concurrent tasks cannot share one)
- across workers and job executions by a Redis lock of the same name

Acquisition blocks with no timeout. Distinct topics never contend.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from redis.asyncio import Redis
from redis.exceptions import LockError

from alert_receiver.core.config import settings
from alert_receiver.core.redis import get_redis

logger = logging.getLogger(__name__)


class TopicLockRegistry:
    """Registry of named locks keyed by topic id."""

    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[Redis]] = get_redis,
        prefix: str | None = None,
    ):
        self._redis_factory = redis_factory
        self.prefix = prefix if prefix is not None else settings.TOPIC_LOCK_PREFIX
        self._local_locks: dict[str, asyncio.Lock] = {}
        self._local_users: dict[str, int] = {}

    def lock_name(self, topic_id: int) -> str:
        return f"{self.prefix}{topic_id}"

    def _checkout_local_lock(self, name: str) -> asyncio.Lock:
        # No await between lookup and insert, so two tasks cannot race here
        lock = self._local_locks.get(name)
        if lock is None:
            lock = self._local_locks[name] = asyncio.Lock()
        self._local_users[name] = self._local_users.get(name, 0) + 1
        return lock

    def _return_local_lock(self, name: str) -> None:
        users = self._local_users[name] - 1
        if users:
            self._local_users[name] = users
        else:
            # Last holder or waiter gone; forget the key
            del self._local_users[name]
            del self._local_locks[name]

    @asynccontextmanager
    async def hold(self, topic_id: int) -> AsyncIterator[None]:
        """Hold the topic's lock for the duration of the block."""
        name = self.lock_name(topic_id)

        local = self._checkout_local_lock(name)
        try:
            async with local:
                redis = await self._redis_factory()
                lock = redis.lock(name, timeout=None, blocking=True)
                await lock.acquire()
                logger.debug("Acquired lock %s", name)
                try:
                    yield
                finally:
                    try:
                        await lock.release()
                    except LockError:
                        logger.warning("Lock %s was no longer owned at release", name)
                    logger.debug("Released lock %s", name)
        finally:
            self._return_local_lock(name)
