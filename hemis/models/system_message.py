"""
SystemMessage model - translatable UI message (default text in base language)
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, Uuid, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from hemis.core.database import Base


class SystemMessage(Base):
    """Translation unit keyed by a dot-namespaced message key"""

    __tablename__ = "system_message"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    message_key = Column(String(255), nullable=False, unique=True)  # button.save, menu.students
    category = Column(String(100), nullable=False)  # button, menu, error, ...
    message = Column(Text, nullable=False)  # default text (uz-UZ)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)  # soft delete

    translations = relationship(
        "SystemMessageTranslation",
        back_populates="system_message",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_system_message_category", "category"),
        Index("idx_system_message_deleted_at", "deleted_at"),
    )

    def get_translation(self, language: str):
        """Exact-tag translation text or None"""
        for t in self.translations:
            if t.language == language and t.translation:
                return t.translation
        return None

    def __repr__(self):
        return f"<SystemMessage(key={self.message_key}, category={self.category})>"
