"""
SystemMessageTranslation model - one translated text per (message, language)
"""
from sqlalchemy import Column, String, Text, DateTime, Uuid, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from hemis.core.database import Base


class SystemMessageTranslation(Base):
    """Translation of a SystemMessage into one language tag"""

    __tablename__ = "system_message_translation"

    message_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("system_message.id", ondelete="CASCADE"),
        primary_key=True,
    )
    language = Column(String(10), primary_key=True)  # ru-RU, en-US, oz-UZ
    translation = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    system_message = relationship("SystemMessage", back_populates="translations")

    __table_args__ = (
        Index("idx_system_message_translation_language", "language"),
    )

    def language_starts_with(self, prefix: str) -> bool:
        """True for `ru` and `ru-*` when prefix is `ru`"""
        return self.language == prefix or self.language.startswith(prefix + "-")

    def __repr__(self):
        return f"<SystemMessageTranslation(message_id={self.message_id}, language={self.language})>"
