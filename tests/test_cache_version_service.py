"""
Tests for the version store and invalidation broadcast
"""
import threading

import pytest
import redis

from hemis.core.exceptions import CacheUnavailableError
from hemis.schemas.cache_event import CacheEventType, CacheInvalidationEvent
from hemis.services.cache_version_service import CacheVersionService


@pytest.fixture
def version_service(redis_cache):
    return CacheVersionService(redis_cache, "node-1")


def test_version_initialized_to_one(version_service, fake_redis):
    assert version_service.get_current_version("i18n") == 1
    assert fake_redis.get("cache:version:i18n") == "1"


def test_increment_is_monotonic(version_service):
    assert version_service.get_current_version("i18n") == 1
    assert version_service.increment_version("i18n") == 2
    assert version_service.increment_version("i18n") == 3
    assert version_service.get_current_version("i18n") == 3


def test_namespaces_are_independent(version_service):
    version_service.increment_version("i18n")
    assert version_service.get_current_version("menu") == 1


def test_concurrent_increments_are_unique(version_service):
    version_service.get_current_version("i18n")
    results = []
    results_lock = threading.Lock()

    def bump():
        value = version_service.increment_version("i18n")
        with results_lock:
            results.append(value)

    threads = [threading.Thread(target=bump) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == list(range(2, 22))


def test_increment_raises_when_redis_down(version_service, fake_redis):
    fake_redis.down = True
    with pytest.raises(CacheUnavailableError):
        version_service.increment_version("i18n")


def test_current_version_defaults_to_one_when_redis_down(version_service, fake_redis):
    fake_redis.down = True
    assert version_service.get_current_version("i18n") == 1


def test_increment_and_publish_broadcasts_event(version_service, fake_redis):
    version = version_service.increment_version_and_publish(
        "i18n", CacheEventType.TRANSLATION_UPDATED, message_key="button.save"
    )

    assert version == 2
    channel, payload = fake_redis.published[-1]
    assert channel == "cache:invalidate:i18n"

    event = CacheInvalidationEvent.model_validate_json(payload)
    assert event.type == CacheEventType.TRANSLATION_UPDATED
    assert event.namespace == "i18n"
    assert event.version == 2
    assert event.server_id == "node-1"
    assert event.message_key == "button.save"


def test_publish_failure_keeps_new_version(version_service, fake_redis, monkeypatch):
    def broken_publish(channel, message):
        raise redis.exceptions.ConnectionError("publish lost")

    monkeypatch.setattr(fake_redis, "publish", broken_publish)

    assert version_service.increment_version_and_publish("i18n") == 2
    assert version_service.get_current_version("i18n") == 2


def test_build_versioned_key(version_service):
    assert version_service.build_versioned_key("i18n", "messages:uz-UZ") == "i18n:v1:messages:uz-UZ"
    assert version_service.build_versioned_key("menu", "admin:ru-RU", 7) == "menu:v7:admin:ru-RU"


def test_lock_is_exclusive_until_released(version_service, fake_redis):
    assert version_service.acquire_lock("i18n:warmup:v2", 30, "owner-a")
    assert not version_service.acquire_lock("i18n:warmup:v2", 30, "owner-b")
    assert 0 < fake_redis.ttl("cache:lock:i18n:warmup:v2") <= 30

    # Only the holder may release
    assert not version_service.release_lock("i18n:warmup:v2", "owner-b")
    assert version_service.release_lock("i18n:warmup:v2", "owner-a")
    assert version_service.acquire_lock("i18n:warmup:v2", 30, "owner-b")


def test_lock_unavailable_when_redis_down(version_service, fake_redis):
    fake_redis.down = True
    assert not version_service.acquire_lock("i18n:warmup:v2", 30)


def test_reset_version(version_service, fake_redis):
    version_service.increment_version("i18n")
    version_service.increment_version("i18n")

    version_service.reset_version("i18n")

    assert version_service.get_current_version("i18n") == 1
    assert fake_redis.ttl("cache:version:i18n") == -1
    event = CacheInvalidationEvent.model_validate_json(fake_redis.published[-1][1])
    assert event.type == CacheEventType.VERSION_RESET


def test_get_all_versions(version_service):
    version_service.increment_version("stats")
    versions = version_service.get_all_versions()

    assert set(versions) == {"i18n", "menu", "userPermissions", "stats"}
    assert versions["stats"] == 2
    assert versions["i18n"] == 1
