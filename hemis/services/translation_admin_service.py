"""
Translation Admin Service - manage system messages from the admin panel
Every change clears the local cache and broadcasts a translation event.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any, List
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from hemis.core.exceptions import ImmutableFieldError, TranslationNotFoundError
from hemis.models.system_message import SystemMessage
from hemis.models.system_message_translation import SystemMessageTranslation
from hemis.schemas.translation import TranslationCreate, TranslationUpdate, TranslationResponse, TranslationPage
from hemis.services.i18n_service import I18nService
from hemis.services.resource_bundle import ResourceBundleLoader, write_properties
from hemis.services.translation_cache_event_publisher import TranslationCacheEventPublisher

logger = logging.getLogger(__name__)


def to_response(message: SystemMessage) -> TranslationResponse:
    return TranslationResponse(
        id=message.id,
        category=message.category,
        message_key=message.message_key,
        message=message.message,
        translations={t.language: t.translation for t in message.translations},
        is_active=message.is_active,
        created_at=message.created_at,
        updated_at=message.updated_at,
    )


class TranslationAdminService:
    """
    Admin CRUD over system messages.
    message_key and category are immutable after creation.
    """

    def __init__(
        self,
        db: Session,
        i18n_service: I18nService,
        publisher: TranslationCacheEventPublisher,
    ):
        self.db = db
        self.i18n_service = i18n_service
        self.publisher = publisher

    def _query(self, include_deleted: bool = False):
        query = self.db.query(SystemMessage).options(selectinload(SystemMessage.translations))
        if not include_deleted:
            query = query.filter(SystemMessage.deleted_at.is_(None))
        return query

    def _get(self, message_id: UUID) -> SystemMessage:
        message = self._query().filter(SystemMessage.id == message_id).first()
        if not message:
            raise TranslationNotFoundError(f"Translation not found: {message_id}")
        return message

    def list_translations(
        self,
        page: int = 0,
        size: int = 20,
        search: Optional[str] = None,
        category: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> TranslationPage:
        """
        Paged list with optional search (key or default text), category and active filters.
        """
        query = self._query()

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                SystemMessage.message_key.ilike(pattern),
                SystemMessage.message.ilike(pattern),
            ))
        if category:
            query = query.filter(SystemMessage.category == category)
        if active is not None:
            query = query.filter(SystemMessage.is_active.is_(active))

        total = query.count()
        messages = query.order_by(SystemMessage.message_key).offset(page * size).limit(size).all()

        return TranslationPage(
            items=[to_response(m) for m in messages],
            total=total,
            page=page,
            size=size,
        )

    def get_translation(self, message_id: UUID) -> TranslationResponse:
        return to_response(self._get(message_id))

    def get_translation_by_key(self, message_key: str) -> TranslationResponse:
        message = self._query().filter(SystemMessage.message_key == message_key).first()
        if not message:
            raise TranslationNotFoundError(f"Translation not found: {message_key}")
        return to_response(message)

    def create_translation(self, data: TranslationCreate) -> TranslationResponse:
        """
        Create message with its translations.

        Raises:
            ValueError: message_key already exists
        """
        exists = self.db.query(SystemMessage.id).filter(
            SystemMessage.message_key == data.message_key
        ).first()
        if exists:
            raise ValueError(f"Message key already exists: {data.message_key}")

        message = SystemMessage(
            category=data.category,
            message_key=data.message_key,
            message=data.message,
            is_active=data.is_active,
        )
        self.db.add(message)
        self.db.flush()
        self._apply_translations(message, data.translations)

        self.db.commit()
        self.db.refresh(message)

        self._after_change()
        self.publisher.publish_translation_created(message.message_key)
        logger.info(f"✅ Translation created: key={message.message_key}")
        return to_response(message)

    def update_translation(self, message_id: UUID, data: TranslationUpdate) -> TranslationResponse:
        """
        Update default text, translations and active flag.

        Raises:
            TranslationNotFoundError: unknown id
            ImmutableFieldError: category or message_key differs from stored value
        """
        logger.info(f"Updating translation: id={message_id}")
        message = self._get(message_id)

        if data.category is not None and data.category != message.category:
            raise ImmutableFieldError("Category is immutable and cannot be changed")
        if data.message_key is not None and data.message_key != message.message_key:
            raise ImmutableFieldError("Message key is immutable and cannot be changed")

        if data.message:
            message.message = data.message
        if data.is_active is not None:
            message.is_active = data.is_active
        message.updated_at = datetime.now(timezone.utc)

        self._apply_translations(message, data.translations)

        self.db.commit()
        self.db.refresh(message)

        self._after_change()
        self.publisher.publish_translation_updated(message.message_key)
        logger.info(f"✅ Translation updated: id={message_id}, key={message.message_key}")
        return to_response(message)

    def toggle_active(self, message_id: UUID) -> TranslationResponse:
        message = self._get(message_id)
        message.is_active = not message.is_active
        message.updated_at = datetime.now(timezone.utc)

        self.db.commit()
        self.db.refresh(message)

        self._after_change()
        self.publisher.publish_translation_updated(message.message_key)
        logger.info(f"✅ Translation active toggled: id={message_id}, active={message.is_active}")
        return to_response(message)

    def delete_translation(self, message_id: UUID) -> None:
        """Soft delete: sets deleted_at, row stays"""
        message = self._get(message_id)
        message.deleted_at = datetime.now(timezone.utc)
        self.db.commit()

        self._after_change()
        self.publisher.publish_translation_deleted(message.message_key)
        logger.info(f"🗑️  Translation soft-deleted: id={message_id}, key={message.message_key}")

    def clear_cache(self) -> Optional[int]:
        """Admin 'clear cache' button"""
        self.i18n_service.translation_cache.clear_local()
        return self.publisher.publish_cache_clear_all()

    def get_statistics(self) -> Dict[str, Any]:
        base = self.db.query(SystemMessage).filter(SystemMessage.deleted_at.is_(None))
        total_messages = base.count()
        active_messages = base.filter(SystemMessage.is_active.is_(True)).count()
        total_translations = self.db.query(SystemMessageTranslation).join(
            SystemMessage, SystemMessageTranslation.message_id == SystemMessage.id
        ).filter(SystemMessage.deleted_at.is_(None)).count()

        category_rows = self.db.query(
            SystemMessage.category, func.count(SystemMessage.id)
        ).filter(SystemMessage.deleted_at.is_(None)).group_by(SystemMessage.category).all()

        return {
            "totalMessages": total_messages,
            "activeMessages": active_messages,
            "inactiveMessages": total_messages - active_messages,
            "totalTranslations": total_translations,
            "categoryBreakdown": {category: count for category, count in category_rows},
            "languages": self.i18n_service.languages.supported,
        }

    def export_to_properties(self, language: str) -> Dict[str, str]:
        """
        Every active message resolved for language (default locale from the main table).
        """
        messages = self._query().filter(SystemMessage.is_active.is_(True)).order_by(
            SystemMessage.message_key
        ).all()
        default_locale = self.i18n_service.languages.default_locale

        properties: Dict[str, str] = {}
        for message in messages:
            if language == default_locale:
                properties[message.message_key] = message.message
            else:
                properties[message.message_key] = self.i18n_service.get_message(message.message_key, language)

        logger.info(f"✅ Exported {len(properties)} properties for language: {language}")
        return properties

    def regenerate_properties_files(self, resource_dir: str) -> Dict[str, Any]:
        """Rewrite menu_{code}.properties for every supported language from the database"""
        bundles = ResourceBundleLoader(resource_dir)
        generated: List[str] = []
        total = 0

        for language in self.i18n_service.languages.supported:
            path = bundles.file_for(language)
            total += write_properties(path, self.export_to_properties(language))
            generated.append(path.name)

        logger.info(f"🔄 Regenerated {len(generated)} properties files ({total} entries) in {resource_dir}")
        return {
            "success": True,
            "files": generated,
            "totalTranslations": total,
            "directory": str(Path(resource_dir)),
        }

    def _apply_translations(self, message: SystemMessage, translations: Dict[str, str]) -> None:
        """Create or update translations; empty texts are ignored"""
        existing = {t.language: t for t in message.translations}

        for language, text in translations.items():
            if not text:
                continue
            if language in existing:
                existing[language].translation = text
                existing[language].updated_at = datetime.now(timezone.utc)
            else:
                message.translations.append(
                    SystemMessageTranslation(language=language, translation=text)
                )

    def _after_change(self) -> None:
        self.i18n_service.translation_cache.clear_local()
