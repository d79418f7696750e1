"""
i18n layer: translation catalogs and the language coordinator.

Not a general i18n framework: only the strings this service emits.
"""

from .coordinator import (
    ChangeOutcome,
    LanguageChangeEvent,
    LanguageCoordinator,
    LanguageState,
    TranslationBinding,
)
from .translator import Translator, load_catalogs

__all__ = [
    "Translator",
    "load_catalogs",
    "LanguageCoordinator",
    "LanguageChangeEvent",
    "LanguageState",
    "ChangeOutcome",
    "TranslationBinding",
]
