import logging
from typing import Optional

import redis

from app.core.setting import config

logger = logging.getLogger(__name__)

# Single process-wide client; redis-py pools connections internally.
_dragonfly_client: Optional[redis.Redis] = None


def get_dragonfly_client() -> redis.Redis:
    """
    Returns the Dragonfly (Redis) client instance.
    Initializes it only once. The client connects lazily, so an unreachable
    server surfaces as redis.RedisError on the first command, not here.
    """
    global _dragonfly_client

    if _dragonfly_client is None:
        _dragonfly_client = redis.Redis(
            host=config.REDIS_HOST,
            port=int(config.REDIS_PORT),
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5
        )
        logger.info(f"Dragonfly client configured for {config.REDIS_HOST}:{config.REDIS_PORT}")
    return _dragonfly_client


def close_dragonfly_client():
    """Release pooled connections on shutdown."""
    global _dragonfly_client

    if _dragonfly_client is not None:
        _dragonfly_client.close()
        _dragonfly_client = None
        logger.info("Dragonfly client closed")
