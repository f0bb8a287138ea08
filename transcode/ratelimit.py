"""
Global job-start limiter shared by every worker process.

Fixed window counter in Redis: key transcode:ratelimit:<window index>,
INCR on each start, EXPIRE set with the first hit. If Redis is unreachable
the job is admitted.
"""
import logging
import time
from typing import Optional, Tuple

import redis
from django.conf import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "transcode:ratelimit"

_client = None


def get_redis_client():
    global _client
    if _client is None:
        _client = redis.Redis.from_url(
            settings.TRANSCODE_RATE_LIMIT_REDIS_URL,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
    return _client


class JobStartLimiter:
    def __init__(self, client=None, limit: Optional[int] = None, window: Optional[int] = None, clock=time.time):
        self._client = client
        self.limit = int(limit if limit is not None else settings.TRANSCODE_RATE_LIMIT)
        self.window = int(window if window is not None else settings.TRANSCODE_RATE_WINDOW_SECONDS)
        self._clock = clock

    @property
    def client(self):
        if self._client is None:
            self._client = get_redis_client()
        return self._client

    def acquire(self) -> Tuple[bool, int]:
        """
        Returns (admitted, retry_after_seconds).
        A limit of 0 or less disables limiting.
        """
        if self.limit <= 0:
            return True, 0

        now = self._clock()
        bucket = int(now // self.window)
        retry_after = max(1, int((bucket + 1) * self.window - now))
        key = f"{KEY_PREFIX}:{bucket}"
        try:
            count = self.client.incr(key)
            if count == 1:
                self.client.expire(key, self.window + 1)
        except redis.RedisError as e:
            logger.warning("rate limiter unavailable, admitting job: %s", e)
            return True, 0

        if count > self.limit:
            logger.info("job start rate limit reached (%s/%ss), retry in %ss", self.limit, self.window, retry_after)
            return False, retry_after
        return True, 0
