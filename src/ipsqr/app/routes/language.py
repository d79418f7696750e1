"""
Language Routes: interface language and the notification feed.

- GET /api/language          current + supported
- PUT /api/language          change (debounced, single notification)
- GET /api/notifications     pending notifications (drain=true empties)
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from ipsqr.app.context import AppContext, get_context, http_error
from ipsqr.domain.errors import UnsupportedLanguageError
from ipsqr.i18n.coordinator import ChangeOutcome

api_router = APIRouter()


def _language_info(ctx: AppContext) -> dict[str, Any]:
    coordinator = ctx.coordinator
    return {
        "language": coordinator.current_language,
        "name": ctx.translator.language_name(coordinator.current_language),
        "supported": [
            {"code": code, "name": ctx.translator.language_name(code)}
            for code in coordinator.supported_languages()
        ],
    }


@api_router.get("/language")
async def get_language(
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    return _language_info(ctx)


@api_router.put("/language")
async def change_language(
    language: str = Body(..., embed=True),
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Switch language.

    outcome is one of changed, unchanged, busy, debounced. Only "changed"
    persists the preference and emits a notification.
    """
    try:
        outcome = ctx.coordinator.change_language(language)
    except UnsupportedLanguageError as e:
        raise http_error(e) from e

    if outcome is ChangeOutcome.CHANGED:
        ctx.client.language = ctx.coordinator.current_language

    return {"outcome": outcome.value, **_language_info(ctx)}


@api_router.get("/notifications")
async def list_notifications(
    category: str | None = None,
    drain: bool = False,
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    if drain:
        items = ctx.notifications.drain()
    else:
        items = ctx.notifications.recent(category)
    return {"notifications": [n.to_dict() for n in items]}
