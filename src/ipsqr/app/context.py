"""
Application context: the service objects shared by every route.

Built once in the lifespan handler and stored on app.state.context.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fastapi import HTTPException, Request

from ipsqr.api.client import NbsQrClient
from ipsqr.core.notifications import NotificationCenter
from ipsqr.core.storage import JsonFileStore, KeyValueStore
from ipsqr.domain.errors import (
    ApiError,
    ErrorCodes,
    IpsQrError,
    StorageError,
    ValidationError,
)
from ipsqr.i18n.coordinator import LanguageCoordinator
from ipsqr.i18n.translator import Translator
from ipsqr.templates.manager import TemplateManager

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: dict[str, Any]
    store: KeyValueStore
    manager: TemplateManager
    translator: Translator
    coordinator: LanguageCoordinator
    notifications: NotificationCenter
    client: NbsQrClient

    def t(self, key: str, **params: Any) -> str:
        """Translate in the active language."""
        return self.translator.translate(key, params)


def build_context(
    config: dict[str, Any],
    store: KeyValueStore | None = None,
    client: NbsQrClient | None = None,
) -> AppContext:
    """
    Wire the services from config.

    Args:
        config: merged settings (see core.config.load_config)
        store: override the file store (tests pass MemoryStore)
        client: override the API client (tests pass a mocked transport)
    """
    if store is None:
        storage = config["storage"]
        store = JsonFileStore(
            Path(storage["path"]),
            quota_bytes=storage.get("quota_bytes"),
        )

    language = config["language"]
    notifications = NotificationCenter(config["notifications"]["max_items"])
    translator = Translator.from_bundled()
    coordinator = LanguageCoordinator(
        store,
        translator,
        notifications,
        debounce_seconds=language["debounce_seconds"],
        default_language=language["default"],
    )

    if client is None:
        api = config["api"]
        client = NbsQrClient(
            base_url=api["base_url"],
            timeout=api["timeout"],
            language=coordinator.current_language,
        )

    manager = TemplateManager(store)
    logger.info(
        f"Context ready: {len(manager)} templates, "
        f"language={coordinator.current_language}"
    )

    return AppContext(
        config=config,
        store=store,
        manager=manager,
        translator=translator,
        coordinator=coordinator,
        notifications=notifications,
        client=client,
    )


def get_context(request: Request) -> AppContext:
    context: AppContext = request.app.state.context
    return context


# =============================================================================
# Error Mapping
# =============================================================================

# ApiError code → HTTP status
API_ERROR_STATUS = {
    ErrorCodes.TIMEOUT: 504,
    ErrorCodes.NETWORK_ERROR: 502,
}

NOT_FOUND = "NOT_FOUND"


def http_error(error: IpsQrError) -> HTTPException:
    """
    Coded error → HTTPException(detail={"code", "message"}).

    validation → 400, storage → 507, timeout → 504, network → 502.
    """
    if isinstance(error, ValidationError):
        status_code = 400
    elif isinstance(error, StorageError):
        status_code = 507
    elif isinstance(error, ApiError):
        status_code = API_ERROR_STATUS.get(error.code, 502)
    else:
        status_code = 500
    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": error.message},
    )


def not_found(message: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": NOT_FOUND, "message": message},
    )
