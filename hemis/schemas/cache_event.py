"""
Pydantic schema for cache invalidation events sent over Redis Pub/Sub
"""
from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field


class CacheEventType(str, Enum):
    TRANSLATION_CREATED = "TRANSLATION_CREATED"
    TRANSLATION_UPDATED = "TRANSLATION_UPDATED"
    TRANSLATION_DELETED = "TRANSLATION_DELETED"
    CACHE_CLEAR_ALL = "CACHE_CLEAR_ALL"
    CACHE_CLEAR_LANGUAGE = "CACHE_CLEAR_LANGUAGE"
    VERSION_RESET = "VERSION_RESET"


class CacheInvalidationEvent(BaseModel):
    """Payload published on cache:invalidate:{namespace}"""
    type: CacheEventType
    namespace: str
    version: int
    server_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message_key: Optional[str] = None
    language: Optional[str] = None
