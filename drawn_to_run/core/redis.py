"""
Redis connection management and the revoked-token store
"""

import redis.asyncio as redis
from typing import Optional
from datetime import datetime, timezone
import logging

from drawn_to_run.config import settings

logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[redis.Redis] = None


async def init_redis():
    """
    Initialize Redis connection
    """
    global redis_client
    try:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True
        )
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise


async def close_redis():
    """
    Close Redis connection
    """
    global redis_client
    if redis_client:
        await redis_client.close()
        redis_client = None
        logger.info("Redis connection closed")


async def get_redis() -> redis.Redis:
    """
    Get Redis client
    """
    if not redis_client:
        await init_redis()
    return redis_client


class TokenBlacklist:
    """
    Revoked access tokens, keyed by their jti and kept until they would
    have expired anyway.
    """

    KEY_PREFIX = "blacklist:"

    def __init__(self, client: redis.Redis):
        self.client = client

    async def revoke(self, jti: str, expires_at: datetime) -> None:
        ttl = max(1, int((expires_at - datetime.now(timezone.utc)).total_seconds()))
        await self.client.setex(f"{self.KEY_PREFIX}{jti}", ttl, "1")
        logger.info(f"Token {jti} revoked for {ttl}s")

    async def is_revoked(self, jti: str) -> bool:
        return await self.client.get(f"{self.KEY_PREFIX}{jti}") is not None
