"""
Language coordinator: sole owner of the active interface language.

State machine: IDLE → CHANGING → IDLE

change_language(code):
1. unsupported code → UnsupportedLanguageError
2. same as current → UNCHANGED
3. change already in flight (re-entrant call) → BUSY
4. within the debounce window of the last change → DEBOUNCED
5. persist preference, re-apply bindings, one notification, broadcast → CHANGED

A failing binding or listener is logged and never aborts the change.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ipsqr.core.notifications import NotificationCenter
from ipsqr.core.storage import KeyValueStore
from ipsqr.domain.constants import (
    DEFAULT_LANGUAGE,
    LANGUAGE_CHANGE_DEBOUNCE_SECONDS,
    LANGUAGE_NOTIFICATION_CATEGORY,
    LANGUAGE_STORAGE_KEY,
    SUPPORTED_LANGUAGES,
)
from ipsqr.domain.errors import StorageError, UnsupportedLanguageError

from .translator import Translator

logger = logging.getLogger(__name__)


class LanguageState(str, Enum):
    IDLE = "idle"
    CHANGING = "changing"


class ChangeOutcome(str, Enum):
    """Result of change_language()."""
    CHANGED = "changed"
    UNCHANGED = "unchanged"   # already the active language
    BUSY = "busy"             # another change in flight
    DEBOUNCED = "debounced"   # too soon after the previous change


@dataclass
class LanguageChangeEvent:
    """Broadcast to subscribers after a change."""
    language: str
    language_name: str
    previous: str
    source: str = "coordinator"


@dataclass
class TranslationBinding:
    """A rendered element tagged for translation: key + how to apply the text."""
    key: str
    apply: Callable[[str], None]
    params: dict[str, Any] = field(default_factory=dict)


LanguageListener = Callable[[LanguageChangeEvent], None]


class LanguageCoordinator:
    """
    Usage:
        coordinator = LanguageCoordinator(store, translator, notifications)
        coordinator.bind("templates.filter.generate", label.set_text)
        coordinator.subscribe(lambda event: refresh(event.language))
        coordinator.change_language("en")
    """

    def __init__(
        self,
        store: KeyValueStore,
        translator: Translator,
        notifications: NotificationCenter | None = None,
        debounce_seconds: float = LANGUAGE_CHANGE_DEBOUNCE_SECONDS,
        default_language: str = DEFAULT_LANGUAGE,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            store: holds the persisted preference
            translator: catalogs; its active language follows this coordinator
            notifications: feed for the single confirmation message
            debounce_seconds: minimum interval between accepted changes
            default_language: used when no valid preference is stored
            clock: monotonic seconds (injectable for tests)
        """
        self.store = store
        self.translator = translator
        self.notifications = (
            notifications if notifications is not None else NotificationCenter()
        )
        self.debounce_seconds = debounce_seconds
        self._clock = clock

        self._state = LanguageState.IDLE
        self._last_change_at: float | None = None
        self._bindings: list[TranslationBinding] = []
        self._listeners: list[LanguageListener] = []

        # initial language: stored preference, no notification
        saved = store.get_item(LANGUAGE_STORAGE_KEY)
        if saved in SUPPORTED_LANGUAGES:
            self._language = saved
        else:
            if saved:
                logger.warning(f"Ignoring unsupported stored language '{saved}'")
            self._language = (
                default_language if default_language in SUPPORTED_LANGUAGES
                else DEFAULT_LANGUAGE
            )
        self.translator.set_language(self._language)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def current_language(self) -> str:
        return self._language

    @property
    def state(self) -> LanguageState:
        return self._state

    @staticmethod
    def supported_languages() -> list[str]:
        return list(SUPPORTED_LANGUAGES)

    # =========================================================================
    # Bindings / Subscribers
    # =========================================================================

    def bind(
        self,
        key: str,
        apply: Callable[[str], None],
        params: dict[str, Any] | None = None,
    ) -> TranslationBinding:
        """Register a translatable element and render it immediately."""
        binding = TranslationBinding(key=key, apply=apply, params=params or {})
        self._bindings.append(binding)
        self._apply_binding(binding)
        return binding

    def unbind(self, binding: TranslationBinding) -> None:
        if binding in self._bindings:
            self._bindings.remove(binding)

    def subscribe(self, listener: LanguageListener) -> Callable[[], None]:
        """
        Add a change listener.

        Returns:
            unsubscribe callable
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def apply_translations(self) -> int:
        """Re-render every binding; returns how many were applied."""
        applied = 0
        for binding in list(self._bindings):
            if self._apply_binding(binding):
                applied += 1
        return applied

    # =========================================================================
    # Change
    # =========================================================================

    def change_language(self, language: str) -> ChangeOutcome:
        """
        Switch the active language.

        Raises:
            UnsupportedLanguageError: language not supported
        """
        if language not in SUPPORTED_LANGUAGES:
            logger.error(f"Invalid language code: {language}")
            raise UnsupportedLanguageError(language)

        if language == self._language:
            return ChangeOutcome.UNCHANGED

        if self._state is LanguageState.CHANGING:
            logger.debug(f"Language change to {language} ignored: change in flight")
            return ChangeOutcome.BUSY

        now = self._clock()
        if (
            self._last_change_at is not None
            and now - self._last_change_at < self.debounce_seconds
        ):
            logger.debug(f"Language change to {language} debounced")
            return ChangeOutcome.DEBOUNCED

        self._state = LanguageState.CHANGING
        self._last_change_at = now
        previous = self._language

        try:
            self._language = language
            self.translator.set_language(language)
            self._persist(language)
            self.apply_translations()

            language_name = self.translator.language_name(language)
            self.notifications.replace_category(
                LANGUAGE_NOTIFICATION_CATEGORY,
                self.translator.translate(
                    "notifications.languageChanged",
                    {"language": language_name},
                ),
                level="info",
            )

            self._broadcast(LanguageChangeEvent(
                language=language,
                language_name=language_name,
                previous=previous,
            ))
            logger.info(f"Language changed: {previous} → {language}")
        finally:
            self._state = LanguageState.IDLE

        return ChangeOutcome.CHANGED

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _persist(self, language: str) -> None:
        """Save preference; a storage failure is reported, not raised."""
        try:
            self.store.set_item(LANGUAGE_STORAGE_KEY, language)
        except StorageError as e:
            logger.error(f"Failed to persist language preference: {e}")
            self.notifications.notify(
                self.translator.translate("notifications.storageFailed"),
                level="warning",
            )

    def _apply_binding(self, binding: TranslationBinding) -> bool:
        try:
            binding.apply(self.translator.translate(binding.key, binding.params))
            return True
        except Exception as e:
            logger.warning(f"Translation binding '{binding.key}' failed: {e}")
            return False

    def _broadcast(self, event: LanguageChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Language listener failed: {e}")
