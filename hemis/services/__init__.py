"""
Business logic services - translation lookups, versioned cache, admin operations
"""
from hemis.services.cache_version_service import CacheVersionService
from hemis.services.translation_cache import TranslationCache
from hemis.services.message_store import MessageStore
from hemis.services.resource_bundle import ResourceBundleLoader
from hemis.services.language_service import LanguageService
from hemis.services.i18n_service import I18nService
from hemis.services.translation_cache_event_publisher import TranslationCacheEventPublisher
from hemis.services.cache_invalidation_listener import CacheInvalidationListener
from hemis.services.translation_admin_service import TranslationAdminService

__all__ = [
    "CacheVersionService",
    "TranslationCache",
    "MessageStore",
    "ResourceBundleLoader",
    "LanguageService",
    "I18nService",
    "TranslationCacheEventPublisher",
    "CacheInvalidationListener",
    "TranslationAdminService",
]
