"""
Redis utilities for HEMIS i18n.
Key-value cache, atomic counters and pub/sub used by the translation cache.
"""
import redis
import json
import logging
from typing import Optional, Any, Callable, Set

from hemis.core.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache manager with connection pooling."""

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        """
        Args:
            url: Redis URL (defaults to settings.REDIS_URL)
            client: Pre-built client, used as-is (tests, shared pools)
        """
        self._url = url or settings.REDIS_URL
        self._pool: Optional[redis.ConnectionPool] = None
        self._client: Optional[redis.Redis] = client
        self._connected = client is not None

    def connect(self):
        """
        Connect to Redis server.
        Safe to call multiple times - will reuse existing connection.
        """
        if self._connected and self._client:
            return

        try:
            self._pool = redis.ConnectionPool.from_url(
                self._url,
                max_connections=20,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
            )
            self._client = redis.Redis(connection_pool=self._pool)

            # Test connection
            self._client.ping()
            self._connected = True
            logger.info("✅ Redis cache connected successfully")
        except redis.RedisError as e:
            logger.warning(f"⚠️  Redis connection failed: {e}. Caching disabled.")
            self._connected = False
            self._client = None

    def disconnect(self):
        """Disconnect from Redis."""
        if self._pool:
            self._pool.disconnect()
        self._connected = False
        self._client = None
        logger.info("Redis cache disconnected")

    @property
    def is_connected(self) -> bool:
        """Check if Redis is connected."""
        return self._connected and self._client is not None

    def ping(self) -> bool:
        if not self.is_connected:
            return False
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis PING error: {e}")
            return False

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/error
        """
        if not self.is_connected:
            return None

        try:
            value = self._client.get(key)
            if value is not None:
                # Try to parse as JSON
                try:
                    return json.loads(value)
                except (json.JSONDecodeError, TypeError):
                    return value
            return None
        except redis.RedisError as e:
            logger.warning(f"Redis GET error for key '{key}': {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = 3600) -> bool:
        """
        Set value in cache with TTL.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            ttl: Time to live in seconds (default: 1 hour, None = no expiry)

        Returns:
            True if successful, False otherwise
        """
        if not self.is_connected:
            return False

        try:
            # Serialize to JSON if not string
            if not isinstance(value, str):
                value = json.dumps(value, ensure_ascii=False)

            if ttl is None:
                self._client.set(key, value)
            else:
                self._client.setex(key, ttl, value)
            return True
        except redis.RedisError as e:
            logger.warning(f"Redis SET error for key '{key}': {e}")
            return False

    def set_if_absent(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """
        SET NX (optionally with EX).

        Returns:
            True if this call created the key, False if it existed or on error
        """
        if not self.is_connected:
            return False

        try:
            return bool(self._client.set(key, value, nx=True, ex=ttl))
        except redis.RedisError as e:
            logger.warning(f"Redis SETNX error for key '{key}': {e}")
            return False

    def delete(self, key: str) -> bool:
        """
        Delete key from cache.

        Args:
            key: Cache key

        Returns:
            True if deleted, False otherwise
        """
        if not self.is_connected:
            return False

        try:
            self._client.delete(key)
            return True
        except redis.RedisError as e:
            logger.warning(f"Redis DELETE error for key '{key}': {e}")
            return False

    def incr(self, key: str) -> Optional[int]:
        """
        Atomic increment.

        Returns:
            New value or None if Redis is unavailable
        """
        if not self.is_connected:
            return None

        try:
            return int(self._client.incr(key))
        except redis.RedisError as e:
            logger.warning(f"Redis INCR error for key '{key}': {e}")
            return None

    def keys_matching(self, pattern: str) -> Set[str]:
        """
        All keys matching a glob pattern.
        Diagnostics only - KEYS is O(n) on the server.
        """
        if not self.is_connected:
            return set()

        try:
            return set(self._client.keys(pattern))
        except redis.RedisError as e:
            logger.warning(f"Redis KEYS error for pattern '{pattern}': {e}")
            return set()

    def publish(self, channel: str, message: str) -> Optional[int]:
        """
        Publish message to channel.

        Returns:
            Number of receivers, or None on error
        """
        if not self.is_connected:
            return None

        try:
            return int(self._client.publish(channel, message))
        except redis.RedisError as e:
            logger.warning(f"Redis PUBLISH error on channel '{channel}': {e}")
            return None

    def subscribe(self, pattern: str, handler: Callable[[dict], None]):
        """
        Pattern-subscribe and dispatch messages to handler in a background thread.

        Args:
            pattern: Channel pattern (e.g., "cache:invalidate:*")
            handler: Called with the redis-py message dict

        Returns:
            Worker thread (call .stop() on shutdown) or None if not connected
        """
        if not self.is_connected:
            logger.warning(f"Redis not connected, cannot subscribe to '{pattern}'")
            return None

        try:
            pubsub = self._client.pubsub(ignore_subscribe_messages=True)
            pubsub.psubscribe(**{pattern: handler})
            thread = pubsub.run_in_thread(sleep_time=1.0, daemon=True)
            logger.info(f"📡 Subscribed to Redis channels: {pattern}")
            return thread
        except redis.RedisError as e:
            logger.warning(f"Redis SUBSCRIBE error for pattern '{pattern}': {e}")
            return None
