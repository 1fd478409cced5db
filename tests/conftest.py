"""Shared test fixtures for HEMIS i18n tests."""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SERVER_ID", "test-server")

import fnmatch
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import pytest
import redis
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hemis import models  # noqa: F401
from hemis.core.database import Base
from hemis.core.redis import RedisCache
from hemis.models.system_message import SystemMessage
from hemis.models.system_message_translation import SystemMessageTranslation
from hemis.services.cache_invalidation_listener import CacheInvalidationListener
from hemis.services.cache_version_service import CacheVersionService
from hemis.services.i18n_service import I18nService
from hemis.services.language_service import LanguageService
from hemis.services.message_store import MessageStore
from hemis.services.resource_bundle import ResourceBundleLoader
from hemis.services.translation_cache import TranslationCache

LANGUAGES = ["uz-UZ", "ru-RU", "en-US"]


class FakePubSubWorker:
    def __init__(self, server, subscriptions):
        self._server = server
        self._subscriptions = subscriptions

    def stop(self):
        self._server.unsubscribe(self._subscriptions)


class FakePubSub:
    def __init__(self, server):
        self._server = server
        self._subscriptions = []

    def psubscribe(self, **handlers):
        self._subscriptions.extend(handlers.items())

    def run_in_thread(self, sleep_time=0.0, daemon=False):
        self._server.register(self._subscriptions)
        return FakePubSubWorker(self._server, self._subscriptions)


class FakeRedis:
    """
    In-memory stand-in for redis.Redis(decode_responses=True).
    Thread-safe; PUBLISH dispatches to pattern subscribers synchronously.
    Set `down = True` to make every command raise ConnectionError.
    """

    def __init__(self):
        self._data: Dict[str, tuple] = {}
        self._lock = threading.RLock()
        self._subscribers = []
        self.published = []
        self.down = False
        self.clock = time.monotonic

    def _check(self):
        if self.down:
            raise redis.exceptions.ConnectionError("Redis is down")

    def _alive(self, key):
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self.clock():
            del self._data[key]
            return None
        return value

    def expire_now(self, key):
        """Simulate TTL expiry of one key"""
        with self._lock:
            self._data.pop(key, None)

    def ping(self):
        self._check()
        return True

    def get(self, key):
        self._check()
        with self._lock:
            return self._alive(key)

    def set(self, key, value, ex=None, nx=False):
        self._check()
        with self._lock:
            if nx and self._alive(key) is not None:
                return None
            self._data[key] = (str(value), self.clock() + ex if ex else None)
            return True

    def setex(self, key, ttl, value):
        return self.set(key, value, ex=ttl)

    def delete(self, *keys):
        self._check()
        with self._lock:
            return sum(1 for key in keys if self._data.pop(key, None) is not None)

    def incr(self, key):
        self._check()
        with self._lock:
            value = int(self._alive(key) or 0) + 1
            expires_at = self._data[key][1] if key in self._data else None
            self._data[key] = (str(value), expires_at)
            return value

    def ttl(self, key):
        self._check()
        with self._lock:
            if self._alive(key) is None:
                return -2
            expires_at = self._data[key][1]
            if expires_at is None:
                return -1
            return math.ceil(expires_at - self.clock())

    def keys(self, pattern="*"):
        self._check()
        with self._lock:
            return [key for key in list(self._data) if self._alive(key) is not None and fnmatch.fnmatchcase(key, pattern)]

    def publish(self, channel, message):
        self._check()
        with self._lock:
            self.published.append((channel, message))
            targets = [(p, h) for p, h in self._subscribers if fnmatch.fnmatchcase(channel, p)]

        for pattern, handler in targets:
            handler({"type": "pmessage", "pattern": pattern, "channel": channel, "data": message})
        return len(targets)

    def pubsub(self, ignore_subscribe_messages=False):
        self._check()
        return FakePubSub(self)

    def register(self, subscriptions):
        with self._lock:
            self._subscribers.extend(subscriptions)

    def unsubscribe(self, subscriptions):
        with self._lock:
            self._subscribers = [s for s in self._subscribers if s not in subscriptions]


class VirtualClock:
    """Monotonic clock that only moves when something sleeps on it"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class CountingMessageStore(MessageStore):
    """MessageStore that counts bulk reads (optionally slowed down)"""

    def __init__(self, session_factory, delay: float = 0.0):
        super().__init__(session_factory)
        self.delay = delay
        self.bulk_reads = 0
        self._count_lock = threading.Lock()

    def _count(self):
        with self._count_lock:
            self.bulk_reads += 1
        if self.delay:
            time.sleep(self.delay)

    def find_active_messages(self, *args, **kwargs):
        self._count()
        return super().find_active_messages(*args, **kwargs)

    def find_translations_by_language(self, *args, **kwargs):
        self._count()
        return super().find_translations_by_language(*args, **kwargs)


@dataclass
class Instance:
    """One simulated application instance sharing Redis and the database"""
    server_id: str
    store: MessageStore
    version_service: CacheVersionService
    translation_cache: TranslationCache
    i18n_service: I18nService
    listener: CacheInvalidationListener


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_cache(fake_redis):
    return RedisCache(client=fake_redis)


@pytest.fixture
def session_factory():
    """SQLite in-memory database shared across threads"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def add_message(session_factory):
    """Insert a SystemMessage with translations; returns its id"""
    def _add(
        message_key: str,
        message: str,
        translations: Optional[Dict[str, str]] = None,
        is_active: bool = True,
        deleted: bool = False,
    ):
        db = session_factory()
        try:
            row = SystemMessage(
                message_key=message_key,
                category=message_key.split(".")[0],
                message=message,
                is_active=is_active,
                deleted_at=datetime.now(timezone.utc) if deleted else None,
            )
            for language, text in (translations or {}).items():
                row.translations.append(SystemMessageTranslation(language=language, translation=text))
            db.add(row)
            db.commit()
            return row.id
        finally:
            db.close()

    return _add


@pytest.fixture
def seeded(add_message):
    add_message("button.save", "Saqlash", {"ru-RU": "Сохранить", "en-US": "Save"})
    add_message("button.cancel", "Bekor qilish", {"ru-RU": "Отмена"})
    add_message("menu.students", "Talabalar", {"ru-RU": "Студенты", "en-US": "Students"})
    add_message("auth.login", "Kirish", {"ru": "Войти"})
    add_message("error.hidden", "Yashirin", {"ru-RU": "Скрыто"}, is_active=False)
    add_message("error.removed", "O'chirilgan", {"ru-RU": "Удалено"}, deleted=True)


@pytest.fixture
def resource_dir(tmp_path):
    directory = tmp_path / "i18n"
    directory.mkdir()
    (directory / "menu_uz.properties").write_text(
        "# uz\nbutton.save=Saqlash (fayl)\nprops.only=Faqat faylda\n", encoding="utf-8"
    )
    (directory / "menu_ru.properties").write_text(
        "# ru\nprops.only=Только в файле\nprops.multiline=Строка 1\\nСтрока 2\n", encoding="utf-8"
    )
    return directory


@pytest.fixture
def bundles(resource_dir):
    loader = ResourceBundleLoader(str(resource_dir))
    loader.load(LANGUAGES)
    return loader


@pytest.fixture
def make_instance(redis_cache, session_factory, bundles):
    """Factory for simulated instances sharing one Redis and one database"""
    def _make(
        server_id: str = "node-1",
        store: Optional[MessageStore] = None,
        poll_interval: Optional[float] = 0.01,
        max_attempts: Optional[int] = 5,
        lock_ttl: Optional[int] = 30,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Instance:
        store = store or MessageStore(session_factory)
        version_service = CacheVersionService(redis_cache, server_id)
        translation_cache = TranslationCache(redis_cache, version_service, ttl=1800, local_ttl=1800)
        languages = LanguageService(session_factory, configured=LANGUAGES, default_locale="uz-UZ")
        i18n_service = I18nService(
            store=store,
            translation_cache=translation_cache,
            version_service=version_service,
            languages=languages,
            bundles=bundles,
        )
        listener = CacheInvalidationListener(
            cache=redis_cache,
            i18n_service=i18n_service,
            version_service=version_service,
            server_id=server_id,
            lock_ttl=lock_ttl,
            poll_interval=poll_interval,
            max_attempts=max_attempts,
            sleep=sleep,
        )
        return Instance(server_id, store, version_service, translation_cache, i18n_service, listener)

    return _make


@pytest.fixture
def instance(make_instance, seeded):
    return make_instance()


@pytest.fixture
def counting_store(session_factory):
    return CountingMessageStore(session_factory)


@pytest.fixture
def make_counting_store(session_factory):
    def _make(delay: float = 0.0) -> CountingMessageStore:
        return CountingMessageStore(session_factory, delay=delay)

    return _make


@pytest.fixture
def virtual_clock(fake_redis):
    """Drives key expiry in the Redis double; pass `virtual_clock.sleep` to listeners"""
    clock = VirtualClock()
    fake_redis.clock = clock.monotonic
    return clock
