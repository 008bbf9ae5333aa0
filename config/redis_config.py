"""
Redis Configuration

Configures the Redis connection used for the distributed metadata index
lock when the sweep runs in a separate Celery worker process.
"""

import os
from typing import Optional

import redis


class RedisConfig:
    """Redis configuration settings."""

    def __init__(self):
        self.host = os.getenv("REDIS_HOST", "localhost")
        self.port = int(os.getenv("REDIS_PORT", 6379))
        self.db = int(os.getenv("REDIS_DB", 0))
        self.password = os.getenv("REDIS_PASSWORD")
        self.socket_timeout = float(os.getenv("REDIS_SOCKET_TIMEOUT", 5))

        # Redis URL format: redis://[:password@]host:port/db
        self.url = os.getenv("REDIS_URL")


def create_redis_client(config: Optional[RedisConfig] = None) -> redis.Redis:
    """
    Create a Redis client.

    Args:
        config: Redis configuration, uses default if None

    Returns:
        redis.Redis client (connects lazily on first command)
    """
    if config is None:
        config = RedisConfig()

    if config.url:
        return redis.Redis.from_url(config.url, socket_timeout=config.socket_timeout)

    connection_kwargs = {
        "host": config.host,
        "port": config.port,
        "db": config.db,
        "socket_timeout": config.socket_timeout,
    }

    if config.password:
        connection_kwargs["password"] = config.password

    return redis.Redis(**connection_kwargs)


def redis_health_check(client: redis.Redis) -> bool:
    """
    Check Redis connectivity.

    Returns:
        True if Redis answers PING
    """
    try:
        return bool(client.ping())
    except redis.RedisError:
        return False
