"""
Cache Version Service - versioned keys for the distributed cache

Redis stores one counter per namespace (cache:version:i18n, ...).
Cache entries embed the version: i18n:v{N}:messages:uz-UZ.
Incrementing the counter makes every older entry unreachable; old entries
are never deleted, they expire through their TTL.
"""
import logging
import time
from typing import Dict, Optional

from hemis.core.config import settings
from hemis.core.exceptions import CacheUnavailableError
from hemis.core.redis import RedisCache
from hemis.schemas.cache_event import CacheEventType, CacheInvalidationEvent

logger = logging.getLogger(__name__)


class CacheVersionService:
    """
    Version counters, invalidation broadcast and short-lived locks.
    """

    VERSION_KEY_PREFIX = "cache:version:"
    LOCK_KEY_PREFIX = "cache:lock:"
    INVALIDATE_CHANNEL_PATTERN = "cache:invalidate:{}"
    KNOWN_NAMESPACES = ["i18n", "menu", "userPermissions", "stats"]
    INITIAL_VERSION = 1

    def __init__(self, cache: RedisCache, server_id: Optional[str] = None):
        self.cache = cache
        self.server_id = server_id or settings.SERVER_ID

    @classmethod
    def channel_for(cls, namespace: str) -> str:
        return cls.INVALIDATE_CHANNEL_PATTERN.format(namespace)

    def get_current_version(self, namespace: str) -> int:
        """
        Get current cache version for namespace.
        Initializes the counter to 1 if it was never set.

        Args:
            namespace: Cache namespace (e.g., "i18n")

        Returns:
            Current version number
        """
        version_key = self.VERSION_KEY_PREFIX + namespace
        version = self.cache.get(version_key)

        if version is None:
            if self.cache.set_if_absent(version_key, str(self.INITIAL_VERSION)):
                logger.info(f"🔢 Initialized cache version: {namespace} = {self.INITIAL_VERSION}")
            else:
                # Lost the race to another initializer (or Redis is down)
                version = self.cache.get(version_key)
            if version is None:
                return self.INITIAL_VERSION

        return int(version)

    def increment_version(self, namespace: str) -> int:
        """
        Increment cache version (atomic INCR).

        Raises:
            CacheUnavailableError: Redis could not perform the increment
        """
        version_key = self.VERSION_KEY_PREFIX + namespace
        # INCR on a missing counter yields 1, which readers already assume
        self.get_current_version(namespace)
        new_version = self.cache.incr(version_key)

        if new_version is None:
            raise CacheUnavailableError(f"Cannot increment cache version for '{namespace}'")

        logger.info(f"🔄 Cache version incremented: {namespace} = {new_version}")
        return new_version

    def increment_version_and_publish(
        self,
        namespace: str,
        event_type: CacheEventType = CacheEventType.CACHE_CLEAR_ALL,
        message_key: Optional[str] = None,
        language: Optional[str] = None,
    ) -> int:
        """
        Increment version AND broadcast the invalidation event.

        Flow:
            1. version++ (INCR)
            2. PUBLISH cache:invalidate:{namespace} {event json}
            3. Every instance clears its local tier, one of them reloads

        Returns:
            New version number
        """
        new_version = self.increment_version(namespace)

        event = CacheInvalidationEvent(
            type=event_type,
            namespace=namespace,
            version=new_version,
            server_id=self.server_id,
            message_key=message_key,
            language=language,
        )
        self.publish(event)
        return new_version

    def publish(self, event: CacheInvalidationEvent) -> bool:
        """Broadcast event. A lost broadcast is tolerated (entries expire via TTL)."""
        channel = self.channel_for(event.namespace)
        receivers = self.cache.publish(channel, event.model_dump_json())

        if receivers is None:
            logger.error(f"❌ Failed to publish invalidation: channel={channel}, version={event.version}")
            return False

        logger.info(
            f"📡 Published invalidation: channel={channel}, type={event.type.value}, "
            f"version={event.version}, receivers={receivers}"
        )
        return True

    def build_versioned_key(self, namespace: str, sub_key: str, version: Optional[int] = None) -> str:
        """
        Format: namespace:v{version}:{sub_key}

        Examples:
            i18n:v1:messages:uz-UZ
            menu:v3:admin:uz-UZ
        """
        if version is None:
            version = self.get_current_version(namespace)
        return f"{namespace}:v{version}:{sub_key}"

    def acquire_lock(self, lock_key: str, ttl: int, owner: Optional[str] = None) -> bool:
        """
        Acquire distributed lock (SET NX EX).
        The TTL is mandatory so a crashed holder cannot lock others out forever.

        Returns:
            True if lock acquired, False if already held or Redis unavailable
        """
        full_key = self.LOCK_KEY_PREFIX + lock_key
        value = owner or f"{self.server_id}-{int(time.time() * 1000)}"

        if self.cache.set_if_absent(full_key, value, ttl=ttl):
            logger.debug(f"🔒 Lock acquired: {lock_key} by {value}")
            return True

        logger.debug(f"⏳ Lock already held: {lock_key}")
        return False

    def release_lock(self, lock_key: str, owner: Optional[str] = None) -> bool:
        """
        Release lock if still held by owner (or unconditionally without owner).
        Check-then-delete is not atomic; a lock that already expired and was
        re-acquired in between can be removed.
        """
        full_key = self.LOCK_KEY_PREFIX + lock_key

        if owner is not None:
            holder = self.cache.get(full_key)
            if holder is not None and str(holder) != owner:
                logger.debug(f"Lock {lock_key} held by {holder}, not releasing")
                return False

        released = self.cache.delete(full_key)
        if released:
            logger.debug(f"🔓 Lock released: {lock_key}")
        return released

    def reset_version(self, namespace: str) -> None:
        """
        Reset version to 1 and broadcast.
        Maintenance only: entries cached under v1 before the reset become reachable again
        until they expire.
        """
        version_key = self.VERSION_KEY_PREFIX + namespace
        if not self.cache.set(version_key, str(self.INITIAL_VERSION), ttl=None):
            raise CacheUnavailableError(f"Cannot reset cache version for '{namespace}'")

        self.publish(CacheInvalidationEvent(
            type=CacheEventType.VERSION_RESET,
            namespace=namespace,
            version=self.INITIAL_VERSION,
            server_id=self.server_id,
        ))
        logger.warning(f"⚠️ Cache version reset: {namespace} = {self.INITIAL_VERSION}")

    def get_all_versions(self) -> Dict[str, int]:
        """Versions of all known namespaces (monitoring)"""
        return {namespace: self.get_current_version(namespace) for namespace in self.KNOWN_NAMESPACES}
