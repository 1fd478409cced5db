"""Dependency Injection container - initialized at app startup."""

from typing import Optional

from hemis.core.config import settings
from hemis.core.database import SessionLocal
from hemis.core.redis import RedisCache
from hemis.services.cache_invalidation_listener import CacheInvalidationListener
from hemis.services.cache_version_service import CacheVersionService
from hemis.services.i18n_service import I18nService
from hemis.services.language_service import LanguageService
from hemis.services.message_store import MessageStore
from hemis.services.resource_bundle import ResourceBundleLoader
from hemis.services.translation_cache import TranslationCache
from hemis.services.translation_cache_event_publisher import TranslationCacheEventPublisher


class Container:
    """Application DI container - holds all singleton instances."""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def init(self, cache: Optional[RedisCache] = None, session_factory=SessionLocal) -> None:
        """Initialize all dependencies. Call once at app startup."""
        if self._initialized:
            return

        # Infrastructure
        self.cache = cache or RedisCache(settings.REDIS_URL)
        self.cache.connect()

        # Core services
        self.version_service = CacheVersionService(self.cache, settings.SERVER_ID)
        self.translation_cache = TranslationCache(self.cache, self.version_service)
        self.languages = LanguageService(session_factory)
        self.bundles = ResourceBundleLoader(settings.I18N_RESOURCE_DIR)

        self.publisher = TranslationCacheEventPublisher(self.version_service)
        self.i18n_service = I18nService(
            store=MessageStore(session_factory),
            translation_cache=self.translation_cache,
            version_service=self.version_service,
            languages=self.languages,
            bundles=self.bundles,
            publisher=self.publisher,
        )
        self.listener = CacheInvalidationListener(
            cache=self.cache,
            i18n_service=self.i18n_service,
            version_service=self.version_service,
        )

        self._initialized = True

    @property
    def initialized(self) -> bool:
        return self._initialized

    def shutdown(self) -> None:
        if not self._initialized:
            return
        self.listener.stop()
        self.cache.disconnect()
        self._initialized = False


# Global container instance
container = Container()
