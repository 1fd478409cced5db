"""
SQLAlchemy models
"""
from hemis.models.system_message import SystemMessage
from hemis.models.system_message_translation import SystemMessageTranslation
from hemis.models.language import Language

__all__ = [
    "SystemMessage",
    "SystemMessageTranslation",
    "Language",
]

# Import Base for Alembic
from hemis.core.database import Base
