"""
I18n Service - translated UI messages with a versioned two-level cache

Lookup order for a language map:
    L1 local -> L2 Redis (i18n:v{N}:messages:{lang}) -> database bulk load

Single-key fallback (never fails):
    database message (exact tag -> language prefix -> default text)
    -> packaged properties file (exact -> prefix)
    -> the key itself
"""
import logging
import time
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from hemis.core.monitoring import monitor_performance, track_metric
from hemis.services.cache_version_service import CacheVersionService
from hemis.services.language_service import LanguageService
from hemis.services.message_store import MessageStore
from hemis.services.resource_bundle import ResourceBundleLoader
from hemis.services.translation_cache import TranslationCache
from hemis.services.translation_cache_event_publisher import TranslationCacheEventPublisher

logger = logging.getLogger(__name__)

# Shown for a blank key so the result is never empty
MISSING_KEY_TEXT = "???"


class I18nService:
    """
    Translation lookups for the web frontend and server-side rendering.
    """

    NAMESPACE = "i18n"

    def __init__(
        self,
        store: MessageStore,
        translation_cache: TranslationCache,
        version_service: CacheVersionService,
        languages: LanguageService,
        bundles: ResourceBundleLoader,
        publisher: Optional[TranslationCacheEventPublisher] = None,
    ):
        self.store = store
        self.translation_cache = translation_cache
        self.version_service = version_service
        self.languages = languages
        self.bundles = bundles
        self.publisher = publisher or TranslationCacheEventPublisher(version_service)

    # ==================== WARMUP ====================

    def load_properties_files(self) -> Dict[str, int]:
        """Load properties files for every supported language (last fallback tier)"""
        return self.bundles.load(self.languages.supported)

    @monitor_performance
    def warmup_cache(self) -> Dict[str, int]:
        """
        Startup warmup: every instance loads the warm set from the database.
        No leader election here - redundant work once per boot is fine.

        Returns:
            {language: messages loaded}; failed languages are absent
        """
        supported = self.languages.supported
        logger.info(f"🔥 I18n cache warmup - languages: {supported}")

        self.load_properties_files()
        loaded = self.warmup_cache_from_database()

        logger.info(
            f"✅ I18n cache warmup completed: {sum(loaded.values())} messages, "
            f"{len(loaded)}/{len(supported)} languages"
        )
        return loaded

    def warmup_cache_from_database(self, version: Optional[int] = None) -> Dict[str, int]:
        """
        Bulk load + cache every warm-set language (leader path and startup).
        A failing language is logged and skipped; the rest continue.

        Args:
            version: Version to write under; defaults to the current one per language
        """
        loaded: Dict[str, int] = {}

        for language in self.languages.supported:
            try:
                messages = self._load_and_cache(language, version)
            except Exception as e:
                logger.error(f"❌ Failed to warmup cache for language: {language}: {e}", exc_info=True)
                continue

            loaded[language] = len(messages)
            logger.info(f"✅ Loaded: {language} - {len(messages)} messages (DB -> L2 Redis)")

        return loaded

    def warmup_cache_from_redis(self) -> Dict[str, int]:
        """
        Follower path: adopt what the leader wrote into the local tier. No DB queries.
        """
        adopted: Dict[str, int] = {}

        for language in self.languages.supported:
            generation = self.translation_cache.local_generation
            messages = self.translation_cache.get_cached(self.NAMESPACE, language)
            if messages is None:
                logger.debug(f"L2 has no entry yet for {language}, will load lazily")
                continue

            self.translation_cache.put_local(language, messages, generation)
            adopted[language] = len(messages)

        logger.info(f"📥 Adopted {len(adopted)} languages from Redis (L2 -> L1)")
        return adopted

    # ==================== PUBLIC API ====================

    def get_message(self, message_key: str, language: str) -> str:
        """
        Get message by key for specific language.

        Args:
            message_key: Message key (e.g., "button.save")
            language: Language tag (e.g., "ru-RU")

        Returns:
            Translated message (never empty - the key itself in the worst case)
        """
        message = self.get_all_messages(language).get(message_key)
        if message:
            return message

        logger.debug(f"Not in bulk map, trying fallback chain: key={message_key}, language={language}")
        return self.resolve(message_key, language)

    def get_all_messages(self, language: str) -> Dict[str, str]:
        """
        Get all messages for a language (bulk).

        Returns:
            {message_key: text}; the properties table for the language if the database fails
        """
        messages = self.translation_cache.get_local(language)
        if messages is not None:
            return dict(messages)

        generation = self.translation_cache.local_generation
        messages = self.translation_cache.get_cached(self.NAMESPACE, language)
        if messages is not None:
            self.translation_cache.put_local(language, messages, generation)
            return dict(messages)

        try:
            messages = self._load_and_cache(language)
        except SQLAlchemyError as e:
            logger.error(f"❌ Bulk load failed for {language}, serving properties fallback: {e}")
            return self.bundles.get_bundle(language)

        return dict(messages)

    def get_messages_by_category(self, category: str, language: str) -> Dict[str, str]:
        """Messages whose key starts with `{category}.`"""
        prefix = category + "."
        return {
            key: text for key, text in self.get_all_messages(language).items()
            if key.startswith(prefix)
        }

    def get_messages_by_scopes(self, scopes: List[str], language: str) -> Dict[str, str]:
        """
        Messages for a set of scopes (progressive loading: auth, dashboard, menu...).
        Scopes are deduplicated and sorted so equal sets give equal results.
        """
        normalized = sorted({scope.strip() for scope in scopes if scope and scope.strip()})
        prefixes = tuple(scope + "." for scope in normalized)
        if not prefixes:
            return {}

        return {
            key: text for key, text in self.get_all_messages(language).items()
            if key.startswith(prefixes)
        }

    def resolve(self, message_key: str, language: str) -> str:
        """
        Resolve one key when it is not in the bulk map.
        Order: DB exact -> DB language prefix -> DB default text
               -> properties exact/prefix -> key.
        """
        if not message_key or not message_key.strip():
            return MISSING_KEY_TEXT

        try:
            message = self.store.find_message_by_key(message_key)
        except SQLAlchemyError as e:
            logger.warning(f"DB lookup failed for key={message_key}, using properties fallback: {e}")
            message = None

        if message is not None:
            text = message.get_translation(language)
            if text:
                return text

            prefix = language.split("-")[0]
            candidates = sorted(
                (t for t in message.translations if t.translation and t.language_starts_with(prefix)),
                key=lambda t: t.language,
            )
            if candidates:
                return candidates[0].translation

            if message.message:
                return message.message

        text = self.bundles.lookup(message_key, language)
        if text:
            logger.debug(f"✅ Found in properties file: key={message_key}, language={language}")
            return text

        logger.debug(f"Translation not found: key={message_key}, language={language}")
        return message_key

    # ==================== BULK LOADER ====================

    def load_all_for_language(self, language: str) -> Dict[str, str]:
        """
        Single bulk read from the database.
        Default locale comes from SystemMessage.message, others from translations.
        Duplicate keys: last one wins.
        """
        if language == self.languages.default_locale:
            rows = self.store.find_active_messages()
        else:
            rows = self.store.find_translations_by_language(language)

        messages: Dict[str, str] = {}
        for key, text in rows:
            messages[key] = text

        logger.debug(f"Loaded {len(messages)} messages from database for language: {language}")
        return messages

    def _load_and_cache(self, language: str, version: Optional[int] = None) -> Dict[str, str]:
        # Capture version and local generation BEFORE reading the DB so a concurrent
        # invalidation can't get stale data stored under the new version.
        if version is None:
            version = self.version_service.get_current_version(self.NAMESPACE)
        generation = self.translation_cache.local_generation

        start = time.time()
        messages = self.load_all_for_language(language)
        track_metric("i18n.bulk_load.duration", time.time() - start, tags={"language": language})

        self.translation_cache.cache(self.NAMESPACE, language, messages, version)
        self.translation_cache.put_local(language, messages, generation)
        return messages

    # ==================== INVALIDATION ====================

    def invalidate_cache(self, language: str) -> Optional[int]:
        """
        Invalidate after a change affecting one language.
        The version is namespace-wide, so every language moves to the new version.

        Returns:
            New version, or None if Redis was unavailable
        """
        logger.info(f"🗑️  Invalidating I18n cache for language: {language}")
        self.translation_cache.evict_local(language)
        return self.publisher.publish_cache_clear_language(language)

    def invalidate_all_caches(self) -> Optional[int]:
        """Clear local tier and move every instance to a new version"""
        logger.info("🗑️  Invalidating ALL I18n caches (all languages)")
        self.translation_cache.clear_local()
        return self.publisher.publish_cache_clear_all()

    def clear_cache(self) -> Optional[int]:
        """Alias for invalidate_all_caches (admin API)"""
        return self.invalidate_all_caches()

    def get_cache_stats(self) -> Dict[str, object]:
        version = self.version_service.get_current_version(self.NAMESPACE)
        stats: Dict[str, object] = {
            "cacheName": self.NAMESPACE,
            "languages": self.languages.supported,
            "defaultLocale": self.languages.default_locale,
            "cacheType": "TwoLevelCache (L1 local + L2 Redis)",
            "currentVersion": version,
            "cacheKeyPattern": self.translation_cache.versioned_key(self.NAMESPACE, "{language}", version),
            "propertiesLocales": self.bundles.locales,
            "redisKeys": sorted(self.translation_cache.keys_matching(
                self.translation_cache.versioned_key(self.NAMESPACE, "*", version)
            )),
        }
        stats.update(self.translation_cache.get_statistics())
        return stats
