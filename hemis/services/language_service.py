"""
Language Service - active UI languages (the cache warm set)
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from hemis.core.config import settings
from hemis.core.database import SessionLocal, read_only_session
from hemis.models.language import Language

logger = logging.getLogger(__name__)


class LanguageService:
    """
    Active languages from h_language, configured list as fallback.
    """

    def __init__(
        self,
        session_factory=SessionLocal,
        configured: Optional[List[str]] = None,
        default_locale: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.configured = list(configured or settings.I18N_SUPPORTED_LANGUAGES)
        self.default_locale = default_locale or settings.I18N_DEFAULT_LOCALE
        self._active: Optional[List[str]] = None

    def load_from_database(self) -> List[str]:
        """
        Load active languages ordered by position.
        Empty table or DB error -> configured list.
        """
        try:
            with read_only_session(self.session_factory) as db:
                codes = [
                    row.code for row in db.query(Language.code).filter(
                        Language.is_active.is_(True)
                    ).order_by(Language.position, Language.code).all()
                ]
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load languages from database, using configured list {self.configured}: {e}")
            self._active = list(self.configured)
            return self._active

        if not codes:
            logger.warning(f"⚠️  No active languages found in database, using configured list: {self.configured}")
            self._active = list(self.configured)
            return self._active

        self._active = codes
        logger.info(f"✅ Loaded {len(codes)} active languages from database: {codes}")

        if self.default_locale not in codes:
            logger.warning(
                f"⚠️  Default locale '{self.default_locale}' not in active languages! "
                f"Using first active: {codes[0]}"
            )
            self.default_locale = codes[0]

        return self._active

    def refresh(self) -> List[str]:
        logger.info("🔄 Refreshing active languages from database...")
        return self.load_from_database()

    @property
    def supported(self) -> List[str]:
        return list(self._active if self._active is not None else self.configured)

    def is_supported(self, locale: str) -> bool:
        return locale in self.supported

    def get_or_default(self, locale: Optional[str]) -> str:
        return locale if locale and self.is_supported(locale) else self.default_locale
