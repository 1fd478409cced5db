"""
Language model - languages enabled in the UI
"""
from sqlalchemy import Column, String, Boolean, Integer

from hemis.core.database import Base


class Language(Base):
    """Supported UI language"""

    __tablename__ = "h_language"

    code = Column(String(10), primary_key=True)  # uz-UZ, oz-UZ, ru-RU, en-US
    name = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Language(code={self.code}, active={self.is_active})>"
