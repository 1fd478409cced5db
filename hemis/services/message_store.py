"""
Message Store - bulk and single-key reads of system messages
Every read runs in its own read-only session; filters are explicit parameters.
"""
from typing import List, Optional, Tuple
from sqlalchemy import and_
from sqlalchemy.orm import selectinload

from hemis.core.database import SessionLocal, read_only_session
from hemis.models.system_message import SystemMessage
from hemis.models.system_message_translation import SystemMessageTranslation


class MessageStore:
    """
    Relational queries used by the i18n core.
    Returned objects are detached; relationships needed by callers are eager-loaded.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    @staticmethod
    def _message_filters(include_inactive: bool, include_deleted: bool) -> list:
        filters = []
        if not include_inactive:
            filters.append(SystemMessage.is_active.is_(True))
        if not include_deleted:
            filters.append(SystemMessage.deleted_at.is_(None))
        return filters

    def find_active_messages(
        self,
        include_inactive: bool = False,
        include_deleted: bool = False,
    ) -> List[Tuple[str, str]]:
        """
        Default-language texts.

        Returns:
            List of (message_key, message) ordered by key
        """
        with read_only_session(self.session_factory) as db:
            rows = db.query(SystemMessage.message_key, SystemMessage.message).filter(
                *self._message_filters(include_inactive, include_deleted)
            ).order_by(SystemMessage.message_key).all()
            return [(row.message_key, row.message) for row in rows]

    def find_translations_by_language(
        self,
        language: str,
        include_inactive: bool = False,
        include_deleted: bool = False,
    ) -> List[Tuple[str, str]]:
        """
        Translations of one language joined with their parent key (single query).

        Returns:
            List of (message_key, translation) ordered by key
        """
        with read_only_session(self.session_factory) as db:
            rows = db.query(
                SystemMessage.message_key,
                SystemMessageTranslation.translation,
            ).join(
                SystemMessageTranslation,
                SystemMessageTranslation.message_id == SystemMessage.id,
            ).filter(
                and_(
                    SystemMessageTranslation.language == language,
                    *self._message_filters(include_inactive, include_deleted)
                )
            ).order_by(SystemMessage.message_key).all()
            return [(row.message_key, row.translation) for row in rows]

    def find_message_by_key(
        self,
        message_key: str,
        include_inactive: bool = False,
        include_deleted: bool = False,
    ) -> Optional[SystemMessage]:
        """Message with its translations attached, or None"""
        with read_only_session(self.session_factory) as db:
            message = db.query(SystemMessage).options(
                selectinload(SystemMessage.translations)
            ).filter(
                SystemMessage.message_key == message_key,
                *self._message_filters(include_inactive, include_deleted)
            ).first()

            if message is not None:
                db.expunge(message)
            return message
