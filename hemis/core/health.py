"""
Health check utilities
"""
from typing import Dict, Any, Optional
from sqlalchemy import text

from hemis import __version__
from hemis.core.database import SessionLocal
from hemis.core.config import settings
from hemis.core.redis import RedisCache
import redis
import logging

logger = logging.getLogger(__name__)


async def check_database(session_factory=SessionLocal) -> Dict[str, Any]:
    """
    Check database connectivity.

    Returns:
        Dictionary with status and details
    """
    try:
        db = session_factory()
        try:
            db.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "message": "Database connection successful"
            }
        finally:
            db.close()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}"
        }


async def check_redis(cache: Optional[RedisCache] = None) -> Dict[str, Any]:
    """
    Check Redis connectivity.
    Redis being down degrades caching only, so it never fails the overall status.
    """
    try:
        if cache is not None:
            ok = cache.ping()
        else:
            ok = bool(redis.from_url(settings.REDIS_URL, socket_connect_timeout=2, socket_timeout=2).ping())
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        ok = False

    if ok:
        return {"status": "healthy", "message": "Redis connection successful"}
    return {"status": "unhealthy", "message": "Redis connection failed (serving from database)"}


async def get_health_status(cache: Optional[RedisCache] = None, session_factory=SessionLocal) -> Dict[str, Any]:
    """
    Get overall health status.

    Returns:
        Dictionary with health status of all components
    """
    db_status = await check_database(session_factory)
    redis_status = await check_redis(cache)

    overall_status = "healthy"
    if db_status["status"] != "healthy":
        overall_status = "unhealthy"

    return {
        "status": overall_status,
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "server_id": settings.SERVER_ID,
        "components": {
            "database": db_status,
            "redis": redis_status,
        }
    }
