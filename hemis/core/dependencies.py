"""
FastAPI dependencies - services from the application container
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from hemis.container import container
from hemis.core.database import get_db
from hemis.services.cache_version_service import CacheVersionService
from hemis.services.i18n_service import I18nService
from hemis.services.translation_admin_service import TranslationAdminService
from hemis.services.translation_cache_event_publisher import TranslationCacheEventPublisher


def get_container():
    """Container, initialized lazily if startup did not run (scripts, tests)"""
    if not container.initialized:
        container.init()
    return container


def get_i18n_service() -> I18nService:
    return get_container().i18n_service


def get_version_service() -> CacheVersionService:
    return get_container().version_service


def get_event_publisher() -> TranslationCacheEventPublisher:
    return get_container().publisher


def get_translation_admin_service(
    db: Session = Depends(get_db),
    i18n_service: I18nService = Depends(get_i18n_service),
    publisher: TranslationCacheEventPublisher = Depends(get_event_publisher),
) -> TranslationAdminService:
    return TranslationAdminService(db, i18n_service, publisher)
