"""
Two-level translation cache

L1: process-local dict, per instance, cleared on invalidation broadcast
L2: Redis, shared, keyed by version: i18n:v{N}:messages:{language}
"""
import logging
import threading
import time
from typing import Dict, Optional, Set, Tuple

from hemis.core.config import settings
from hemis.core.redis import RedisCache
from hemis.services.cache_version_service import CacheVersionService

logger = logging.getLogger(__name__)


class TranslationCache:
    """Per-language message maps in a local tier backed by Redis."""

    MESSAGES_SUB_KEY = "messages:{}"
    WARMUP_DONE_SUB_KEY = "warmup:done"

    def __init__(
        self,
        cache: RedisCache,
        version_service: CacheVersionService,
        ttl: Optional[int] = None,
        local_ttl: Optional[int] = None,
    ):
        self.redis = cache
        self.version_service = version_service
        self.ttl = ttl or settings.I18N_CACHE_TTL_SECONDS
        self.local_ttl = local_ttl or settings.I18N_LOCAL_CACHE_TTL_SECONDS

        self._local: Dict[str, Tuple[float, Dict[str, str]]] = {}
        self._lock = threading.Lock()
        self._generation = 0
        self._stats = {"l1_hits": 0, "l1_misses": 0, "l2_hits": 0, "l2_misses": 0}

    # ---------- L2 (Redis) ----------

    def versioned_key(self, namespace: str, language: str, version: Optional[int] = None) -> str:
        return self.version_service.build_versioned_key(
            namespace, self.MESSAGES_SUB_KEY.format(language), version
        )

    def get_cached(self, namespace: str, language: str) -> Optional[Dict[str, str]]:
        """
        Look up the map under the CURRENT version.
        An entry written under an older version is never addressed, so it reads as a miss.
        """
        key = self.versioned_key(namespace, language)
        value = self.redis.get(key)

        if isinstance(value, dict):
            self._bump("l2_hits")
            logger.debug(f"✅ L2 HIT (Redis): {key}")
            return value

        self._bump("l2_misses")
        logger.debug(f"❌ L2 MISS (Redis): {key}")
        return None

    def cache(
        self,
        namespace: str,
        language: str,
        messages: Dict[str, str],
        version: Optional[int] = None,
    ) -> bool:
        """
        Write map under the versioned key with the safety-net TTL.

        Args:
            version: Version captured before loading; defaults to the current one
        """
        key = self.versioned_key(namespace, language, version)
        stored = self.redis.set(key, messages, ttl=self.ttl)
        if stored:
            logger.debug(f"💾 L2 PUT (Redis): {key} ({len(messages)} messages)")
        return stored

    def has_entry(self, namespace: str, language: str, version: int) -> bool:
        return self.redis.get(self.versioned_key(namespace, language, version)) is not None

    def mark_warmup_done(self, namespace: str, version: int) -> bool:
        key = self.version_service.build_versioned_key(namespace, self.WARMUP_DONE_SUB_KEY, version)
        return self.redis.set(key, str(int(time.time() * 1000)), ttl=self.ttl)

    def is_warmup_done(self, namespace: str, version: int) -> bool:
        key = self.version_service.build_versioned_key(namespace, self.WARMUP_DONE_SUB_KEY, version)
        return self.redis.get(key) is not None

    def keys_matching(self, pattern: str) -> Set[str]:
        """Diagnostics only, not on the request path"""
        return self.redis.keys_matching(pattern)

    # ---------- L1 (local) ----------

    def get_local(self, language: str) -> Optional[Dict[str, str]]:
        with self._lock:
            entry = self._local.get(language)
            if entry is None:
                self._stats["l1_misses"] += 1
                return None

            expires_at, messages = entry
            if expires_at <= time.monotonic():
                del self._local[language]
                self._stats["l1_misses"] += 1
                return None

            self._stats["l1_hits"] += 1
            return messages

    @property
    def local_generation(self) -> int:
        """Bumped on every local clear; lets a loader detect it raced an invalidation."""
        return self._generation

    def put_local(self, language: str, messages: Dict[str, str], generation: Optional[int] = None) -> bool:
        """
        Store map locally.
        Skipped when generation is given and a clear happened since it was read.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._local[language] = (time.monotonic() + self.local_ttl, messages)
            return True

    def clear_local(self) -> int:
        """Drop every local entry; returns how many were dropped."""
        with self._lock:
            dropped = len(self._local)
            self._local.clear()
            self._generation += 1
        logger.info(f"🧹 Cleared L1 translation cache ({dropped} languages)")
        return dropped

    def evict_local(self, language: str) -> None:
        with self._lock:
            self._local.pop(language, None)
            self._generation += 1

    # ---------- stats ----------

    def _bump(self, counter: str) -> None:
        with self._lock:
            self._stats[counter] += 1

    def get_statistics(self) -> Dict[str, object]:
        with self._lock:
            stats = dict(self._stats)
            local_languages = sorted(self._local.keys())

        l1_total = stats["l1_hits"] + stats["l1_misses"]
        l2_total = stats["l2_hits"] + stats["l2_misses"]

        return {
            "L1_Local": {
                "hitCount": stats["l1_hits"],
                "missCount": stats["l1_misses"],
                "hitRate": f"{(stats['l1_hits'] * 100.0 / l1_total) if l1_total else 0.0:.2f}%",
                "size": len(local_languages),
                "languages": local_languages,
                "ttlSeconds": self.local_ttl,
            },
            "L2_Redis": {
                "hitCount": stats["l2_hits"],
                "missCount": stats["l2_misses"],
                "hitRate": f"{(stats['l2_hits'] * 100.0 / l2_total) if l2_total else 0.0:.2f}%",
                "connected": self.redis.is_connected,
                "ttlSeconds": self.ttl,
            },
        }
