#!/usr/bin/env python3
"""
Regenerate the bundled menu_{lang}.properties files from the database.
Run after bulk translation edits so the last fallback tier matches production.
"""
import sys
from pathlib import Path

from hemis.container import container
from hemis.core.config import settings
from hemis.core.database import SessionLocal
from hemis.core.logging_config import setup_logging
from hemis.services.translation_admin_service import TranslationAdminService


def regenerate(resource_dir: str) -> dict:
    """Export every supported language into resource_dir"""
    container.init()
    container.languages.load_from_database()

    db = SessionLocal()
    try:
        service = TranslationAdminService(db, container.i18n_service, container.publisher)
        return service.regenerate_properties_files(resource_dir)
    finally:
        db.close()
        container.shutdown()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Regenerate i18n properties files from the database')
    parser.add_argument('--dir', help='Target directory', default=settings.I18N_RESOURCE_DIR)

    args = parser.parse_args()
    setup_logging()

    target = Path(args.dir)
    if not target.is_dir():
        print(f"❌ Directory not found: {target}")
        sys.exit(1)

    print(f"🔄 Regenerating properties files in {target}")
    result = regenerate(str(target))
    print(f"✅ Done! {len(result['files'])} files, {result['totalTranslations']} translations")
