"""
Job queue between the cron scheduler and the worker.

Entries are bare job names such as ``content_sync``; the worker looks the
name up in its handler table. Redis carries them between processes, the
in-memory queue only works inside one.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

logger = logging.getLogger(__name__)


class JobQueue(Protocol):
    def enqueue(self, job_name: str) -> None:
        ...

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[str]:
        ...

    def __len__(self) -> int:
        ...


class InMemoryJobQueue:
    """FIFO of job names for tests and single-process runs."""

    def __init__(self):
        self._names: deque[str] = deque()

    def enqueue(self, job_name: str) -> None:
        self._names.append(job_name)

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[str]:
        # Nothing else can enqueue while we wait, so blocking would never return.
        return self._names.popleft() if self._names else None

    def __len__(self) -> int:
        return len(self._names)


class RedisJobQueue:
    """Job names in a Redis list: RPUSH to enqueue, (B)LPOP to take."""

    def __init__(self, url: str, queue_key: str = "servicehub:jobs"):
        self.url = url
        self.queue_key = queue_key
        self.client = self._connect()

    def _connect(self) -> redis.Redis:
        return redis.Redis.from_url(self.url, decode_responses=True)

    def enqueue(self, job_name: str) -> None:
        self.client.rpush(self.queue_key, job_name)

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[str]:
        try:
            if not block:
                return self.client.lpop(self.queue_key)
            popped = self.client.blpop([self.queue_key], timeout=timeout or 0)
        except redis_exceptions.ConnectionError as exc:
            # Managed Redis drops idle connections; the worker loop polls again.
            logger.warning("Lost Redis connection (%s); reconnecting", exc)
            self.client = self._connect()
            return None
        return popped[1] if popped else None

    def __len__(self) -> int:
        return self.client.llen(self.queue_key)
