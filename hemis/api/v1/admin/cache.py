"""
Cache endpoints for Admin API.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from hemis.core.dependencies import get_version_service
from hemis.core.exceptions import CacheUnavailableError
from hemis.core.rate_limit import limiter
from hemis.core.security import CACHE_MANAGE_PERMISSION, require_permission
from hemis.services.cache_version_service import CacheVersionService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_permission(CACHE_MANAGE_PERMISSION))])

I18N_NAMESPACE = "i18n"


@router.post("/cache/refresh/i18n")
@limiter.limit("10/minute")
async def refresh_i18n_cache(
    request: Request,
    version_service: CacheVersionService = Depends(get_version_service)
):
    """
    Move the i18n namespace to a new version and broadcast it.
    No cache is touched here: every instance (this one included) reloads
    through its invalidation listener.
    """
    try:
        version = version_service.increment_version_and_publish(I18N_NAMESPACE)
    except CacheUnavailableError as e:
        logger.error(f"❌ I18n cache refresh failed: {e}")
        raise HTTPException(status_code=503, detail="Cache unavailable - version not incremented")

    logger.info(f"🔄 I18n cache refresh requested -> v{version}")
    return {"success": True, "namespace": I18N_NAMESPACE, "version": version}


@router.get("/cache/versions")
async def get_cache_versions(version_service: CacheVersionService = Depends(get_version_service)):
    """Current version of every known namespace"""
    return {"success": True, "data": version_service.get_all_versions()}
