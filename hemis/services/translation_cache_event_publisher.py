"""
Translation Cache Event Publisher

Every translation change moves the i18n namespace to a new version and
broadcasts a typed event on cache:invalidate:i18n so other instances
drop their local tier and one of them reloads.
"""
import logging
from typing import Optional

from hemis.core.exceptions import CacheUnavailableError
from hemis.schemas.cache_event import CacheEventType
from hemis.services.cache_version_service import CacheVersionService

logger = logging.getLogger(__name__)


class TranslationCacheEventPublisher:
    """
    Usage:
        # After updating translation
        publisher.publish_translation_updated("menu.dashboard")

        # After clearing all caches
        publisher.publish_cache_clear_all()
    """

    NAMESPACE = "i18n"

    def __init__(self, version_service: CacheVersionService):
        self.version_service = version_service

    def publish_translation_created(self, message_key: str) -> Optional[int]:
        return self._publish(CacheEventType.TRANSLATION_CREATED, message_key=message_key)

    def publish_translation_updated(self, message_key: str) -> Optional[int]:
        return self._publish(CacheEventType.TRANSLATION_UPDATED, message_key=message_key)

    def publish_translation_deleted(self, message_key: str) -> Optional[int]:
        return self._publish(CacheEventType.TRANSLATION_DELETED, message_key=message_key)

    def publish_cache_clear_all(self) -> Optional[int]:
        return self._publish(CacheEventType.CACHE_CLEAR_ALL)

    def publish_cache_clear_language(self, language: str) -> Optional[int]:
        return self._publish(CacheEventType.CACHE_CLEAR_LANGUAGE, language=language)

    def _publish(
        self,
        event_type: CacheEventType,
        message_key: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Optional[int]:
        """
        Returns:
            New version, or None if Redis was unavailable (data is saved; caches
            catch up when their TTL expires)
        """
        try:
            version = self.version_service.increment_version_and_publish(
                self.NAMESPACE, event_type, message_key=message_key, language=language
            )
        except CacheUnavailableError as e:
            logger.error(f"Failed to publish translation cache event {event_type.value}: {e}")
            return None

        logger.info(
            f"📤 Published translation cache event: type={event_type.value}, "
            f"key={message_key}, language={language}, version={version}"
        )
        return version
