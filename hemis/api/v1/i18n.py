"""
Public i18n endpoints for the web frontend.
"""
import logging
from fastapi import APIRouter, Depends, Query
from typing import Optional

from hemis.core.dependencies import get_i18n_service
from hemis.services.i18n_service import I18nService

logger = logging.getLogger(__name__)

router = APIRouter()


def _language(i18n: I18nService, lang: Optional[str]) -> str:
    return lang or i18n.languages.default_locale


@router.get("/messages")
async def get_all_messages(
    lang: Optional[str] = Query(None, description="Language tag, e.g. ru-RU"),
    i18n: I18nService = Depends(get_i18n_service)
):
    """
    All messages for a language (frontend bulk load).

    Returns:
        {"button.save": "Сохранить", ...}
    """
    language = _language(i18n, lang)
    messages = i18n.get_all_messages(language)
    return {"success": True, "language": language, "count": len(messages), "data": messages}


@router.get("/messages/scopes")
async def get_messages_by_scopes(
    scopes: str = Query(..., min_length=1, description="Comma-separated scopes, e.g. auth,menu"),
    lang: Optional[str] = Query(None),
    i18n: I18nService = Depends(get_i18n_service)
):
    """
    Progressive loading: only the scopes a page needs.
    Login page: scopes=auth; dashboard: scopes=auth,dashboard,menu
    """
    language = _language(i18n, lang)
    scope_list = [s for s in scopes.split(",") if s.strip()]
    messages = i18n.get_messages_by_scopes(scope_list, language)
    return {
        "success": True,
        "language": language,
        "scopes": sorted({s.strip() for s in scope_list}),
        "count": len(messages),
        "data": messages,
    }


@router.get("/messages/category/{category}")
async def get_messages_by_category(
    category: str,
    lang: Optional[str] = Query(None),
    i18n: I18nService = Depends(get_i18n_service)
):
    language = _language(i18n, lang)
    messages = i18n.get_messages_by_category(category, language)
    return {"success": True, "language": language, "category": category, "count": len(messages), "data": messages}


@router.get("/messages/{key}")
async def get_message(
    key: str,
    lang: Optional[str] = Query(None),
    i18n: I18nService = Depends(get_i18n_service)
):
    """
    Single message. Never 404 - unknown keys come back as the key itself.
    """
    language = _language(i18n, lang)
    return {"success": True, "language": language, "key": key, "data": i18n.get_message(key, language)}


@router.get("/cache/stats")
async def get_cache_stats(i18n: I18nService = Depends(get_i18n_service)):
    """Cache statistics for monitoring and debugging"""
    return {"success": True, "data": i18n.get_cache_stats()}


@router.get("/health")
async def i18n_health(i18n: I18nService = Depends(get_i18n_service)):
    version = i18n.version_service.get_current_version(I18nService.NAMESPACE)
    return {
        "success": True,
        "data": {
            "status": "UP",
            "languages": i18n.languages.supported,
            "defaultLocale": i18n.languages.default_locale,
            "cacheVersion": version,
            "redisConnected": i18n.translation_cache.redis.is_connected,
        },
    }
