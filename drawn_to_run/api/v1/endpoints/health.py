"""
Health check endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from drawn_to_run.core.database import get_session
from drawn_to_run.core.redis import get_redis
from drawn_to_run.config import settings

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/live")
async def liveness() -> Any:
    """
    Liveness probe
    """
    return {"status": "alive", "service": "drawn-to-run-api"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),
    redis_client=Depends(get_redis)
) -> Any:
    """
    Readiness probe - checks the database and the token store
    """
    checks = {
        "database": False,
        "redis": False,
    }

    try:
        result = await db.execute(text("SELECT 1"))
        checks["database"] = result.scalar() == 1
    except SQLAlchemyError as e:
        logger.warning(f"Database readiness check failed: {e}")

    try:
        await redis_client.ping()
        checks["redis"] = True
    except (RedisError, OSError) as e:
        logger.warning(f"Redis readiness check failed: {e}")

    return {
        "status": "ready" if all(checks.values()) else "not ready",
        "checks": checks,
        "version": settings.APP_VERSION
    }
