"""
Translation catalogs.

Bundled JSON catalogs under locales/ for the supported languages.
Lookup: dotted key in the active language → fallback language → key itself.
Placeholders use {{name}} syntax.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from ipsqr.domain.constants import (
    DEFAULT_LANGUAGE,
    FALLBACK_LANGUAGE,
    LANGUAGE_NAMES,
    SUPPORTED_LANGUAGES,
)
from ipsqr.domain.errors import UnsupportedLanguageError

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

# endpoint → catalog key for its label
ENDPOINT_LABEL_KEYS = {
    "/gen": "templates.filter.generate",
    "/generate": "templates.filter.generateResponse",
    "/validate": "templates.filter.validate",
    "/upload": "templates.filter.upload",
}


def load_catalogs(locales_dir: Path = LOCALES_DIR) -> dict[str, dict[str, Any]]:
    """
    Load {language: catalog} for every supported language found.

    A missing or broken catalog is logged and skipped; lookups then fall
    back to the fallback language.
    """
    catalogs: dict[str, dict[str, Any]] = {}
    for language in SUPPORTED_LANGUAGES:
        path = locales_dir / f"{language}.json"
        try:
            catalogs[language] = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading language {language}: {e}")
    return catalogs


class Translator:
    """
    Key → text lookup for the active language.

    Usage:
        translator = Translator.from_bundled()
        translator.set_language("en")
        translator.translate("notifications.templateSaved", {"name": "Rent"})
    """

    def __init__(
        self,
        catalogs: dict[str, dict[str, Any]],
        language: str = DEFAULT_LANGUAGE,
        fallback_language: str = FALLBACK_LANGUAGE,
    ):
        self.catalogs = catalogs
        self.fallback_language = fallback_language
        self._language = DEFAULT_LANGUAGE
        self.set_language(language)

    @classmethod
    def from_bundled(cls, language: str = DEFAULT_LANGUAGE) -> "Translator":
        return cls(load_catalogs(), language=language)

    @property
    def language(self) -> str:
        return self._language

    def set_language(self, language: str) -> None:
        """
        Switch the active language.

        Raises:
            UnsupportedLanguageError: language not supported
        """
        if language not in SUPPORTED_LANGUAGES:
            raise UnsupportedLanguageError(language)
        self._language = language

    def translate(
        self,
        key: str,
        params: dict[str, Any] | None = None,
        language: str | None = None,
    ) -> str:
        """
        Translate key.

        Args:
            key: dotted key (e.g. "notifications.templateSaved")
            params: {{placeholder}} values
            language: override the active language for this call

        Returns:
            translated text, or key itself when no catalog has it
        """
        language = language or self._language

        text = _lookup(self.catalogs.get(language), key)
        if text is None and language != self.fallback_language:
            text = _lookup(self.catalogs.get(self.fallback_language), key)

        if text is None:
            logger.warning(f"Translation not found: {key}")
            text = key

        return _replace_params(text, params)

    t = translate

    def endpoint_label(self, endpoint: str, language: str | None = None) -> str:
        """Localized endpoint label; unknown endpoints returned as-is."""
        key = ENDPOINT_LABEL_KEYS.get(endpoint)
        if key is None:
            return endpoint
        return self.translate(key, language=language)

    @staticmethod
    def language_name(language: str) -> str:
        return LANGUAGE_NAMES.get(language, language)


def _lookup(catalog: dict[str, Any] | None, key: str) -> str | None:
    if not catalog:
        return None

    node: Any = catalog
    for part in key.split("."):
        if isinstance(node, dict) and part in node:
            node = node[part]
        else:
            return None
    return node if isinstance(node, str) else None


def _replace_params(text: str, params: dict[str, Any] | None) -> str:
    if not params:
        return text

    def _sub(match: re.Match) -> str:
        name = match.group(1)
        return str(params[name]) if name in params else match.group(0)

    return PLACEHOLDER_PATTERN.sub(_sub, text)
