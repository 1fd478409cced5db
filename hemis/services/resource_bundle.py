"""
Properties files - last fallback tier for translations
Files: i18n/menu_uz.properties, i18n/menu_ru.properties, ...
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from hemis.core.exceptions import ResourceFileError

logger = logging.getLogger(__name__)

COMMENT_PREFIXES = ("#", "!")


def parse_properties(text: str, source: str = "<string>") -> Dict[str, str]:
    """
    Parse key=value (or key: value) lines.
    Duplicate keys: the last one wins.

    Raises:
        ResourceFileError: a non-comment line has no separator
    """
    result: Dict[str, str] = {}

    for line_no, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue

        positions = [p for p in (line.find("="), line.find(":")) if p > 0]
        if not positions:
            raise ResourceFileError(f"{source}:{line_no}: missing '=' in line {raw!r}")

        sep = min(positions)
        key = line[:sep].strip()
        value = line[sep + 1:].strip()
        result[key] = value.replace("\\n", "\n")

    return result


def format_properties(messages: Dict[str, str]) -> str:
    """Sorted key=value lines, newlines in values escaped as \\n"""
    lines = [
        f"{key}={messages[key].replace(chr(10), chr(92) + 'n')}"
        for key in sorted(messages)
    ]
    return "\n".join(lines) + "\n" if lines else ""


def write_properties(path: Path, messages: Dict[str, str]) -> int:
    """Write properties file (UTF-8). Returns number of entries written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_properties(messages), encoding="utf-8")
    return len(messages)


class ResourceBundleLoader:
    """
    In-memory table {locale -> {key -> text}} loaded once at startup.
    """

    FILE_PATTERN = "menu_{}.properties"

    def __init__(self, resource_dir: str):
        self.resource_dir = Path(resource_dir)
        self._bundles: Dict[str, Dict[str, str]] = {}

    def file_for(self, locale: str) -> Path:
        # uz-UZ -> menu_uz.properties
        return self.resource_dir / self.FILE_PATTERN.format(locale.split("-")[0])

    def load(self, locales: Iterable[str]) -> Dict[str, int]:
        """
        Load one file per locale. Missing or malformed files are skipped with a warning.

        Returns:
            {locale: entries loaded}
        """
        loaded: Dict[str, int] = {}
        bundles: Dict[str, Dict[str, str]] = {}

        for locale in locales:
            path = self.file_for(locale)
            if not path.exists():
                logger.warning(f"⚠️  Properties file not found: {path} (skipping fallback for {locale})")
                continue

            try:
                bundles[locale] = parse_properties(path.read_text(encoding="utf-8"), str(path))
            except (ResourceFileError, UnicodeDecodeError, OSError) as e:
                logger.warning(f"⚠️  Skipping malformed properties file {path}: {e}")
                continue

            loaded[locale] = len(bundles[locale])
            logger.info(f"✅ Loaded {loaded[locale]} properties for language: {locale} from {path.name}")

        self._bundles = bundles
        return loaded

    def get_bundle(self, locale: str) -> Dict[str, str]:
        return dict(self._bundles.get(locale, {}))

    @property
    def locales(self):
        return sorted(self._bundles.keys())

    def lookup(self, message_key: str, language: str) -> Optional[str]:
        """
        Exact locale first, then any loaded locale sharing the language subtag.
        """
        bundle = self._bundles.get(language)
        if bundle and bundle.get(message_key):
            return bundle[message_key]

        prefix = language.split("-")[0]
        for locale in sorted(self._bundles):
            if locale == language:
                continue
            if locale == prefix or locale.startswith(prefix + "-"):
                value = self._bundles[locale].get(message_key)
                if value:
                    return value

        return None
