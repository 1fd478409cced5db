"""
Cache Invalidation Listener - leader/follower reload after a version bump

Flow on every instance receiving cache:invalidate:i18n:
    1. clear L1 (local) cache
    2. try to claim cache:lock:i18n:warmup:v{N} (SET NX EX)
    3. leader   -> bulk load every warm-set language, write under v{N}, mark done
       follower -> poll for the done marker, adopt L2 into L1
    4. follower past its attempts -> claim again on every poll; the token frees
       up once a crashed leader's TTL runs out and the follower becomes leader
    5. wait budget spent with the token still held -> entries load lazily

Known race: if a leader runs longer than the token TTL, a follower can claim
the expired token and reload at the same time. Both write identical data.
"""
import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from pydantic import ValidationError

from hemis.core.config import settings
from hemis.core.redis import RedisCache
from hemis.schemas.cache_event import CacheInvalidationEvent
from hemis.services.cache_version_service import CacheVersionService
from hemis.services.i18n_service import I18nService

logger = logging.getLogger(__name__)

ROLE_LEADER = "leader"
ROLE_FOLLOWER = "follower"
ROLE_PROMOTED = "promoted"
ROLE_GAVE_UP = "gave_up"
ROLE_SKIPPED = "skipped"


class CacheInvalidationListener:
    """Subscribes to invalidation broadcasts and runs the reload protocol."""

    CHANNEL_PATTERN = "cache:invalidate:*"

    def __init__(
        self,
        cache: RedisCache,
        i18n_service: I18nService,
        version_service: CacheVersionService,
        server_id: Optional[str] = None,
        lock_ttl: Optional[int] = None,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.cache = cache
        self.i18n_service = i18n_service
        self.version_service = version_service
        self.translation_cache = i18n_service.translation_cache
        self.server_id = server_id or settings.SERVER_ID
        self.lock_ttl = lock_ttl or settings.I18N_LEADER_LOCK_TTL_SECONDS
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.I18N_FOLLOWER_POLL_INTERVAL_SECONDS
        )
        self.max_attempts = max_attempts or settings.I18N_FOLLOWER_MAX_ATTEMPTS
        # Room for a crashed holder's token to expire and for one promoted peer to finish
        if self.poll_interval > 0:
            self.max_wait_polls = self.max_attempts + 2 * math.ceil(self.lock_ttl / self.poll_interval)
        else:
            self.max_wait_polls = self.max_attempts
        self._sleep = sleep
        self._thread = None
        self._executor: Optional[ThreadPoolExecutor] = None

    # ---------- lifecycle ----------

    def start(self) -> bool:
        """Subscribe in a background thread. Returns False if Redis is unavailable."""
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="i18n-invalidation")
        self._thread = self.cache.subscribe(self.CHANNEL_PATTERN, self.on_message)

        if self._thread is None:
            logger.warning("⚠️  Invalidation listener not started - relying on cache TTL only")
            return False

        logger.info(f"✅ Ready to receive cache invalidation signals (server: {self.server_id})")
        return True

    def stop(self) -> None:
        if self._thread is not None:
            self._thread.stop()
            self._thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        logger.info("Invalidation listener stopped")

    # ---------- message handling ----------

    def on_message(self, message: dict) -> None:
        """redis-py pub/sub callback; hands work off so the reader thread never blocks"""
        channel = message.get("channel")
        data = message.get("data")

        if self._executor is None:
            self.handle_payload(channel, data)
        else:
            self._executor.submit(self.handle_payload, channel, data)

    def handle_payload(self, channel: str, data) -> Optional[str]:
        try:
            event = CacheInvalidationEvent.model_validate_json(data)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring malformed invalidation message on {channel}: {e}")
            return None

        if event.namespace != I18nService.NAMESPACE:
            logger.debug(f"Ignoring invalidation for namespace '{event.namespace}'")
            return None

        try:
            return self.handle_event(event)
        except Exception as e:
            logger.error(f"❌ Failed to process cache invalidation signal: {e}", exc_info=True)
            return None

    def handle_event(self, event: CacheInvalidationEvent) -> str:
        """
        Run the reload protocol for one invalidation event.

        Returns:
            Role this instance played (leader, follower, promoted, gave_up, skipped)
        """
        namespace = event.namespace
        logger.info(
            f"📡 Cache invalidation received: type={event.type.value}, version={event.version}, "
            f"from={event.server_id}, here={self.server_id}"
        )

        self.translation_cache.clear_local()

        current = self.version_service.get_current_version(namespace)
        if current > event.version:
            logger.info(f"Version moved on ({event.version} -> {current}), newer event drives the reload")
            return ROLE_SKIPPED

        lock_key = self.lock_key(namespace, event.version)
        owner = f"{self.server_id}-{int(time.time() * 1000)}"

        if self.version_service.acquire_lock(lock_key, self.lock_ttl, owner):
            logger.info("🏆 Leader election SUCCESS - loading from database")
            self._lead(event.version, lock_key, owner)
            return ROLE_LEADER

        logger.info("⏳ Leader election FAILED - waiting for leader to populate Redis")
        return self._follow(event.version, lock_key, owner)

    @staticmethod
    def lock_key(namespace: str, version: int) -> str:
        return f"{namespace}:warmup:v{version}"

    def _lead(self, version: int, lock_key: str, owner: str) -> None:
        start = time.time()
        loaded = self.i18n_service.warmup_cache_from_database(version)

        if not loaded and self.i18n_service.languages.supported:
            # Nothing reloaded: free the token so a follower can try
            self.version_service.release_lock(lock_key, owner)
            logger.error(f"❌ Leader reload for v{version} loaded no language")
            return

        # Token is left to expire so late receivers of this event stay followers
        self.translation_cache.mark_warmup_done(I18nService.NAMESPACE, version)
        logger.info(
            f"✅ Leader reload v{version}: {sum(loaded.values())} messages, "
            f"{len(loaded)} languages in {(time.time() - start) * 1000:.0f}ms"
        )

    def _follow(self, version: int, lock_key: str, owner: str) -> str:
        """
        Poll for the leader's done marker. After max_attempts polls the token is
        claimed on every poll, so a follower takes over once a crashed leader's
        token expires.

        Returns:
            follower (done or superseded), promoted, or gave_up
        """
        namespace = I18nService.NAMESPACE

        for attempt in range(1, self.max_wait_polls + 1):
            if self.translation_cache.is_warmup_done(namespace, version):
                logger.debug(f"Leader finished v{version} (attempt {attempt})")
                self.i18n_service.warmup_cache_from_redis()
                return ROLE_FOLLOWER

            if self.version_service.get_current_version(namespace) > version:
                self.i18n_service.warmup_cache_from_redis()
                return ROLE_FOLLOWER

            if attempt > self.max_attempts and self.version_service.acquire_lock(lock_key, self.lock_ttl, owner):
                logger.warning(f"⚠️  Leader did not finish v{version} - promoting self to leader")
                self._lead(version, lock_key, owner)
                return ROLE_PROMOTED

            self._sleep(self.poll_interval)

        logger.warning(f"⚠️  Token for v{version} still held after {self.max_wait_polls} polls - entries will load lazily")
        return ROLE_GAVE_UP
