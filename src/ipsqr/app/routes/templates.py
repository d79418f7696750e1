"""
Templates Routes: saved payment-form templates.

- GET    /api/templates              list (q=search, endpoint=filter)
- POST   /api/templates              save current form as template
- DELETE /api/templates              delete all
- GET    /api/templates/export       JSON download
- POST   /api/templates/import       upload .json export
- GET    /api/templates/statistics
- GET/PATCH/DELETE /api/templates/{id}
- POST   /api/templates/{id}/use
- POST   /api/templates/{id}/duplicate

StorageError → 507: the change IS applied in memory but not persisted.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from ipsqr.app.context import AppContext, get_context, http_error, not_found
from ipsqr.domain.constants import DEFAULT_METHOD, IMPORT_FILE_EXTENSION
from ipsqr.domain.errors import (
    ErrorCodes,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

api_router = APIRouter()


def _storage_failed(ctx: AppContext, error: StorageError) -> None:
    logger.error(f"Template change not persisted: {error}")
    ctx.notifications.notify(ctx.t("notifications.storageFailed"), level="error")


# =============================================================================
# Collection
# =============================================================================

@api_router.get("")
async def list_templates(
    q: str | None = None,
    endpoint: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Templates, optionally searched by q and filtered by endpoint."""
    manager = ctx.manager
    templates = manager.search(q) if q else manager.list_templates()
    if endpoint:
        templates = [t for t in templates if t.endpoint == endpoint]

    return {
        "templates": [t.to_dict() for t in templates],
        "count": len(templates),
    }


@api_router.post("", status_code=201)
async def create_template(
    name: str = Body(...),
    data: dict[str, Any] = Body(...),
    endpoint: str = Body(...),
    description: str = Body(""),
    method: str = Body(DEFAULT_METHOD),
    replace: bool = Body(False),
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Save form data as a template.

    replace=true overwrites an existing template with the same name;
    otherwise a name clash → 400 TEMPLATE_NAME_EXISTS.
    """
    try:
        template = ctx.manager.save_from_form(
            name, description, data, endpoint, method, replace=replace,
        )
    except StorageError as e:
        _storage_failed(ctx, e)
        raise http_error(e) from e
    except ValidationError as e:
        raise http_error(e) from e

    message = ctx.t("notifications.templateSaved", name=template.name)
    ctx.notifications.notify(message, level="success")
    return {
        "success": True,
        "template": template.to_dict(),
        "message": message,
    }


@api_router.delete("")
async def clear_templates(
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Delete every template."""
    try:
        ctx.manager.clear()
    except StorageError as e:
        _storage_failed(ctx, e)
        raise http_error(e) from e

    message = ctx.t("notifications.templatesCleared")
    ctx.notifications.notify(message, level="success")
    return {"success": True, "message": message}


# =============================================================================
# Import / Export / Statistics
# =============================================================================

@api_router.get("/export")
async def export_templates(
    ctx: AppContext = Depends(get_context),
) -> Response:
    """All templates as a downloadable JSON document."""
    filename = ctx.manager.export_filename()
    return Response(
        content=ctx.manager.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@api_router.post("/import")
async def import_templates(
    file: UploadFile = File(...),
    overwrite: bool = Form(False),
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Import an exported .json file.

    Existing (name, endpoint) pairs are skipped unless overwrite=true.
    Malformed entries are skipped and reported in errors. A failed write
    answers 507 with the per-record result in detail.
    """
    if not (file.filename or "").lower().endswith(IMPORT_FILE_EXTENSION):
        error = ValidationError(
            ErrorCodes.INVALID_IMPORT_FILE,
            ctx.t("notifications.pleaseSelectJsonFile"),
            filename=file.filename,
        )
        raise http_error(error)

    content = await file.read()
    try:
        result = ctx.manager.import_templates(content, overwrite=overwrite)
    except ValidationError as e:
        ctx.notifications.notify(e.message, level="error")
        raise http_error(e) from e

    if not result.persisted:
        error = StorageError(result.storage_error, ctx.t("notifications.storageFailed"))
        _storage_failed(ctx, error)
        raise HTTPException(
            status_code=507,
            detail={"code": error.code, "message": error.message, **result.to_dict()},
        )

    message = ctx.t(
        "notifications.templatesImported",
        imported=result.imported,
        skipped=result.skipped,
    )
    ctx.notifications.notify(message, level="success")
    return {"success": True, "message": message, **result.to_dict()}


@api_router.get("/statistics")
async def template_statistics(
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    return ctx.manager.statistics().to_dict()


# =============================================================================
# Single Template
# =============================================================================

@api_router.get("/{template_id}")
async def get_template(
    template_id: str,
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    template = ctx.manager.get(template_id)
    if template is None:
        raise not_found(ctx.t("notifications.templateNotFound"))
    return template.to_dict()


@api_router.patch("/{template_id}")
async def update_template(
    template_id: str,
    updates: dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Merge updates (id/createdAt ignored, updatedAt refreshed)."""
    try:
        template = ctx.manager.update(template_id, updates)
    except StorageError as e:
        _storage_failed(ctx, e)
        raise http_error(e) from e
    except ValidationError as e:
        raise http_error(e) from e

    if template is None:
        raise not_found(ctx.t("notifications.templateNotFound"))

    message = ctx.t("notifications.templateUpdated", name=template.name)
    return {"success": True, "template": template.to_dict(), "message": message}


@api_router.delete("/{template_id}")
async def delete_template(
    template_id: str,
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    template = ctx.manager.get(template_id)
    if template is None:
        raise not_found(ctx.t("notifications.templateNotFound"))

    try:
        ctx.manager.delete(template_id)
    except StorageError as e:
        _storage_failed(ctx, e)
        raise http_error(e) from e

    message = ctx.t("notifications.templateDeleted", name=template.name)
    ctx.notifications.notify(message, level="success")
    return {"success": True, "template_id": template_id, "message": message}


@api_router.post("/{template_id}/use")
async def use_template(
    template_id: str,
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Record a use (usageCount + 1, lastUsed = now) and return the template."""
    try:
        ctx.manager.increment_usage(template_id)
    except StorageError as e:
        _storage_failed(ctx, e)
        raise http_error(e) from e

    template = ctx.manager.get(template_id)
    if template is None:
        raise not_found(ctx.t("notifications.templateNotFound"))
    return template.to_dict()


@api_router.post("/{template_id}/duplicate", status_code=201)
async def duplicate_template(
    template_id: str,
    name: str = Body(..., embed=True),
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    if not name.strip():
        error = ValidationError(
            ErrorCodes.MISSING_REQUIRED_FIELD,
            "Template name is required",
            field="name",
        )
        raise http_error(error)

    try:
        template = ctx.manager.duplicate(template_id, name.strip())
    except StorageError as e:
        _storage_failed(ctx, e)
        raise http_error(e) from e

    if template is None:
        raise not_found(ctx.t("notifications.templateNotFound"))

    message = ctx.t("notifications.templateDuplicated", name=template.name)
    ctx.notifications.notify(message, level="success")
    return {"success": True, "template": template.to_dict(), "message": message}
