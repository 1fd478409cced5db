"""
Pydantic schemas for Translation admin API
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, List
from uuid import UUID
from datetime import datetime


class TranslationCreate(BaseModel):
    """Schema for creating a message with its translations"""
    category: str = Field(..., min_length=1, max_length=100)
    message_key: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)  # default (uz-UZ) text
    translations: Dict[str, str] = Field(default_factory=dict)  # {"ru-RU": "...", "en-US": "..."}
    is_active: bool = True


class TranslationUpdate(BaseModel):
    """
    Schema for updating a message.
    category and message_key may be sent but must match the stored values.
    """
    category: Optional[str] = None
    message_key: Optional[str] = None
    message: Optional[str] = None
    translations: Dict[str, str] = Field(default_factory=dict)
    is_active: Optional[bool] = None


class TranslationResponse(BaseModel):
    """Schema for translation response"""
    id: UUID
    category: str
    message_key: str
    message: str
    translations: Dict[str, str] = Field(default_factory=dict)
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TranslationPage(BaseModel):
    """Paged translation list"""
    items: List[TranslationResponse]
    total: int
    page: int
    size: int
