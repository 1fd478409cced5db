"""
Tests for the leader/follower reload after an invalidation broadcast
"""
import threading
import time

from hemis.core.config import settings
from hemis.schemas.cache_event import CacheEventType, CacheInvalidationEvent
from hemis.services.cache_invalidation_listener import (
    CacheInvalidationListener,
    ROLE_FOLLOWER,
    ROLE_GAVE_UP,
    ROLE_LEADER,
    ROLE_PROMOTED,
    ROLE_SKIPPED,
)
from hemis.services.translation_cache_event_publisher import TranslationCacheEventPublisher

LOCK_V2 = "cache:lock:i18n:warmup:v2"


def _event(version: int, namespace: str = "i18n", server_id: str = "admin-node") -> CacheInvalidationEvent:
    return CacheInvalidationEvent(
        type=CacheEventType.CACHE_CLEAR_ALL,
        namespace=namespace,
        version=version,
        server_id=server_id,
    )


def _bump(node) -> CacheInvalidationEvent:
    return _event(node.version_service.increment_version("i18n"))


def test_exactly_one_instance_reloads(make_instance, make_counting_store, seeded):
    store = make_counting_store(delay=0.02)
    nodes = [make_instance(f"node-{i}", store=store, max_attempts=200) for i in range(5)]
    event = _bump(nodes[0])

    roles = []
    roles_lock = threading.Lock()
    barrier = threading.Barrier(len(nodes))

    def receive(node):
        barrier.wait()
        role = node.listener.handle_event(event)
        with roles_lock:
            roles.append(role)

    threads = [threading.Thread(target=receive, args=(node,)) for node in nodes]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert roles.count(ROLE_LEADER) == 1
    assert roles.count(ROLE_FOLLOWER) == len(nodes) - 1
    # one bulk read per language, all done by the leader
    assert store.bulk_reads == 3
    for node in nodes:
        assert node.translation_cache.get_local("ru-RU")["button.save"] == "Сохранить"


def test_follower_reads_leader_data_without_loading(make_instance, make_counting_store, seeded, fake_redis):
    leader_store = make_counting_store(delay=0.05)
    follower_store = make_counting_store()
    node_a = make_instance("node-a", store=leader_store, max_attempts=200)
    node_b = make_instance("node-b", store=follower_store, max_attempts=200)
    event = _bump(node_a)

    result = {}
    leader = threading.Thread(target=lambda: result.update(a=node_a.listener.handle_event(event)))
    leader.start()

    deadline = time.monotonic() + 5
    while fake_redis.get(LOCK_V2) is None and time.monotonic() < deadline:
        time.sleep(0.001)

    # B's claim fails at once and it waits for A
    assert node_b.listener.handle_event(event) == ROLE_FOLLOWER
    leader.join(timeout=10)

    assert result["a"] == ROLE_LEADER
    assert node_b.i18n_service.get_all_messages("ru-RU")["button.save"] == "Сохранить"
    assert node_b.i18n_service.get_message("menu.students", "en-US") == "Students"
    assert follower_store.bulk_reads == 0
    assert leader_store.bulk_reads == 3


def test_leader_writes_under_event_version(make_instance, seeded, fake_redis):
    node = make_instance()
    event = _bump(node)

    assert node.listener.handle_event(event) == ROLE_LEADER

    for language in ["uz-UZ", "ru-RU", "en-US"]:
        assert fake_redis.get(f"i18n:v2:messages:{language}") is not None
    assert node.translation_cache.is_warmup_done("i18n", 2)
    # token stays until it expires so late receivers stay followers
    assert fake_redis.get(LOCK_V2) is not None


def test_late_receiver_stays_follower(make_instance, make_counting_store, seeded):
    store = make_counting_store()
    node_a = make_instance("node-a", store=store)
    node_b = make_instance("node-b", store=store)
    event = _bump(node_a)

    assert node_a.listener.handle_event(event) == ROLE_LEADER
    assert node_b.listener.handle_event(event) == ROLE_FOLLOWER
    assert store.bulk_reads == 3


def test_follower_promotes_itself_when_leader_vanishes(make_instance, make_counting_store, seeded, fake_redis, redis_cache):
    store = make_counting_store()
    node = make_instance("node-b", store=store)
    event = _bump(node)

    # a leader that claimed the token and died
    assert node.version_service.acquire_lock("i18n:warmup:v2", 30, "ghost")

    listener = CacheInvalidationListener(
        cache=redis_cache,
        i18n_service=node.i18n_service,
        version_service=node.version_service,
        server_id="node-b",
        poll_interval=0.01,
        max_attempts=3,
        sleep=lambda seconds: fake_redis.expire_now(LOCK_V2),
    )

    assert listener.handle_event(event) == ROLE_PROMOTED
    assert store.bulk_reads == 3
    assert node.translation_cache.is_warmup_done("i18n", 2)


def test_followers_take_over_from_crashed_leader_with_default_settings(
    make_instance, make_counting_store, seeded, fake_redis, virtual_clock
):
    store = make_counting_store()
    nodes = [
        make_instance(
            f"node-{i}", store=store, poll_interval=None, max_attempts=None,
            lock_ttl=None, sleep=virtual_clock.sleep,
        )
        for i in range(3)
    ]
    listener = nodes[0].listener
    assert listener.poll_interval == settings.I18N_FOLLOWER_POLL_INTERVAL_SECONDS
    assert listener.max_attempts == settings.I18N_FOLLOWER_MAX_ATTEMPTS
    assert listener.lock_ttl == settings.I18N_LEADER_LOCK_TTL_SECONDS

    event = _bump(nodes[0])
    started = virtual_clock.monotonic()
    # leader claimed the token with the configured TTL and died mid-reload
    assert nodes[0].version_service.acquire_lock(
        "i18n:warmup:v2", settings.I18N_LEADER_LOCK_TTL_SECONDS, "crashed-node"
    )

    roles = [node.listener.handle_event(event) for node in nodes]

    assert roles == [ROLE_PROMOTED, ROLE_FOLLOWER, ROLE_FOLLOWER]
    assert virtual_clock.monotonic() - started >= settings.I18N_LEADER_LOCK_TTL_SECONDS
    assert store.bulk_reads == 3
    assert nodes[0].translation_cache.is_warmup_done("i18n", 2)
    for language in ["uz-UZ", "ru-RU", "en-US"]:
        assert fake_redis.get(f"i18n:v2:messages:{language}") is not None
    for node in nodes:
        assert node.translation_cache.get_local("ru-RU")["button.save"] == "Сохранить"


def test_follower_gives_up_while_token_outlives_wait(make_instance, make_counting_store, seeded, virtual_clock):
    store = make_counting_store()
    node = make_instance("node-b", store=store, poll_interval=0.2, max_attempts=25, sleep=virtual_clock.sleep)
    event = _bump(node)
    node.translation_cache.put_local("ru-RU", {"stale": "value"})

    # held far longer than a leader token ever lives
    assert node.version_service.acquire_lock("i18n:warmup:v2", 3600, "stuck-holder")

    assert node.listener.handle_event(event) == ROLE_GAVE_UP
    assert store.bulk_reads == 0
    assert node.translation_cache.get_local("ru-RU") is None

    # next read loads lazily
    assert node.i18n_service.get_all_messages("ru-RU")["button.save"] == "Сохранить"

def test_stale_event_is_skipped(make_instance, make_counting_store, seeded):
    store = make_counting_store()
    node = make_instance(store=store)
    old_event = _bump(node)
    _bump(node)

    assert node.listener.handle_event(old_event) == ROLE_SKIPPED
    assert store.bulk_reads == 0


def test_failed_leader_releases_token(make_instance, seeded, fake_redis, monkeypatch):
    node = make_instance()
    event = _bump(node)

    def broken(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(node.store, "find_active_messages", broken)
    monkeypatch.setattr(node.store, "find_translations_by_language", broken)

    assert node.listener.handle_event(event) == ROLE_LEADER
    assert fake_redis.get(LOCK_V2) is None
    assert not node.translation_cache.is_warmup_done("i18n", 2)


def test_handle_payload_ignores_bad_and_foreign_messages(instance):
    listener = instance.listener
    assert listener.handle_payload("cache:invalidate:i18n", "not json") is None
    assert listener.handle_payload("cache:invalidate:i18n", '{"type": "UNKNOWN"}') is None

    foreign = _event(2, namespace="menu").model_dump_json()
    assert listener.handle_payload("cache:invalidate:menu", foreign) is None


def test_handle_payload_runs_protocol(instance):
    event = _bump(instance)
    role = instance.listener.handle_payload("cache:invalidate:i18n", event.model_dump_json())
    assert role == ROLE_LEADER


def test_broadcast_reaches_every_subscribed_instance(make_instance, make_counting_store, seeded, redis_cache):
    store = make_counting_store()
    nodes = [make_instance(f"node-{i}", store=store) for i in range(3)]
    for node in nodes:
        node.i18n_service.get_all_messages("en-US")
        redis_cache.subscribe(CacheInvalidationListener.CHANNEL_PATTERN, node.listener.on_message)
    reads_before = store.bulk_reads

    publisher = TranslationCacheEventPublisher(nodes[0].version_service)
    assert publisher.publish_translation_updated("button.save") == 2

    assert store.bulk_reads - reads_before == 3
    for node in nodes:
        assert node.translation_cache.get_local("en-US") == {"button.save": "Save", "menu.students": "Students"}


def test_listener_start_and_stop(instance, fake_redis):
    assert instance.listener.start() is True
    assert len(fake_redis._subscribers) == 1

    instance.listener.stop()
    assert fake_redis._subscribers == []


def test_listener_start_without_redis(instance, fake_redis):
    fake_redis.down = True
    assert instance.listener.start() is False
    instance.listener.stop()
