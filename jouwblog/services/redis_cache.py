from typing import Optional, Dict, Any
import logging

import redis

from jouwblog.config import config

logger = logging.getLogger(__name__)


class RedisCache:
    """
    Owns the Redis connection shared by the Redis repositories.

    The client is created on first use so importing the service layer never
    opens a socket.
    """

    def __init__(self, client: Optional[redis.Redis] = None, uri: Optional[str] = None):
        self._client = client
        self.uri = uri or config.REDIS_URI
        self.ttl_seconds = config.REDIS_TTL_SECONDS

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            logger.info(f"Connecting to Redis: {config.redis_display_uri()}")
            self._client = redis.Redis.from_url(self.uri, decode_responses=True)
        return self._client

    def check_health(self) -> Dict[str, Any]:
        try:
            self.client.ping()
            return {
                'status': 'healthy',
                'ttl_seconds': self.ttl_seconds
            }
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e)
            }

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Redis connection closed")


redis_cache = RedisCache()
