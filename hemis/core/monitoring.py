"""
Monitoring utilities for metrics and error tracking
"""
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import logging
import time
from functools import wraps

from hemis.core.config import settings

logger = logging.getLogger(__name__)


def track_error(
    error_type: str,
    language: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
):
    """
    Track error for monitoring.

    Args:
        error_type: Type of error
        language: Language tag the error relates to (optional)
        metadata: Additional metadata
    """
    error_data = {
        "error_type": error_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_id": settings.SERVER_ID,
        "language": language,
        "metadata": metadata or {},
    }

    logger.error(f"Error tracked: {error_data}")


def track_metric(
    metric_name: str,
    value: float,
    tags: Optional[Dict[str, str]] = None
):
    """
    Track metric for monitoring.

    Args:
        metric_name: Name of metric
        value: Metric value
        tags: Additional tags
    """
    metric_data = {
        "metric": metric_name,
        "value": value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_id": settings.SERVER_ID,
        "tags": tags or {},
    }

    logger.info(f"Metric: {metric_data}")


def monitor_performance(func):
    """
    Log the duration of a blocking call as `{qualname}.duration`, tagged with
    success or error. Errors are tracked and re-raised.

    Usage:
        @monitor_performance
        def warmup_cache(self):
            ...
    """
    name = func.__qualname__

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.monotonic()
        status = "error"

        try:
            result = func(*args, **kwargs)
            status = "success"
            return result
        except Exception as e:
            track_error(
                f"{name}.error",
                metadata={"error": str(e), "duration": time.monotonic() - start_time}
            )
            raise
        finally:
            track_metric(f"{name}.duration", time.monotonic() - start_time, tags={"status": status})

    return wrapper
