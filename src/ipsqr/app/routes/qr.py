"""
QR Routes: proxy to the NBS IPS QR API.

- POST /api/qr/gen        JSON fields → PNG (or the bank's JSON error)
- POST /api/qr/generate   text/plain payload → JSON
- POST /api/qr/validate   text/plain payload → JSON
- POST /api/qr/upload     multipart image → JSON
- POST /api/qr/payload    JSON fields → payload text (local, no API call)

?lang defaults to the active interface language.
Timeout → 504, network failure → 502, bad input → 400.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, File, Request, UploadFile
from fastapi.responses import Response

from ipsqr.api.payload import parse_payload_text, prepare_text_request
from ipsqr.app.context import AppContext, get_context, http_error
from ipsqr.domain.errors import ApiError, ErrorCodes, ValidationError
from ipsqr.domain.schemas import ApiResponse

logger = logging.getLogger(__name__)

api_router = APIRouter()

# ApiError code → notification key
API_ERROR_MESSAGES = {
    ErrorCodes.TIMEOUT: "notifications.requestTimeout",
    ErrorCodes.NETWORK_ERROR: "notifications.networkError",
}


def _api_failed(ctx: AppContext, error: ApiError) -> None:
    key = API_ERROR_MESSAGES.get(error.code, "notifications.unexpectedError")
    ctx.notifications.notify(ctx.t(key), level="error")


def _result(ctx: AppContext, response: ApiResponse) -> dict[str, Any]:
    if not response.api_ok:
        ctx.notifications.notify(
            response.error_message or ctx.t("notifications.apiError"),
            level="error",
        )
    return response.to_dict()


async def _read_text(request: Request) -> str:
    body = await request.body()
    try:
        text = body.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise http_error(ValidationError(
            ErrorCodes.INVALID_ENCODING,
            "Payload text must be UTF-8",
            position=e.start,
        )) from e
    if not text:
        raise http_error(ValidationError(
            ErrorCodes.MISSING_REQUIRED_FIELD,
            "Payload text is required",
            field="text",
        ))
    return text


# =============================================================================
# API Routes
# =============================================================================

@api_router.post("/gen", response_model=None)
async def gen(
    fields: dict[str, Any] = Body(...),
    size: int | None = None,
    lang: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> Response | dict[str, Any]:
    """Structured fields → QR image. Missing K/V/C/R/N → 400."""
    try:
        response = await ctx.client.generate_image(
            fields, size=size, lang=lang or ctx.coordinator.current_language,
        )
    except ValidationError as e:
        raise http_error(e) from e
    except ApiError as e:
        _api_failed(ctx, e)
        raise http_error(e) from e

    if response.is_image and response.success:
        return Response(content=response.data, media_type=response.content_type)
    return _result(ctx, response)


@api_router.post("/generate")
async def generate(
    request: Request,
    size: int | None = None,
    lang: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Payload text → JSON with parsed data and base64 image."""
    text = await _read_text(request)
    try:
        response = await ctx.client.generate_with_response(
            text, size=size, lang=lang or ctx.coordinator.current_language,
        )
    except ApiError as e:
        _api_failed(ctx, e)
        raise http_error(e) from e
    return _result(ctx, response)


@api_router.post("/validate")
async def validate(
    request: Request,
    lang: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Payload text → bank validation verdict."""
    text = await _read_text(request)
    try:
        response = await ctx.client.validate(
            text, lang=lang or ctx.coordinator.current_language,
        )
    except ApiError as e:
        _api_failed(ctx, e)
        raise http_error(e) from e
    return _result(ctx, response)


@api_router.post("/upload")
async def upload(
    file: UploadFile = File(...),
    lang: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """QR image → bank validation verdict. PNG/JPEG up to 5 MB."""
    content = await file.read()
    content_type = file.content_type or ""

    try:
        response = await ctx.client.upload(
            content,
            file.filename or "qr.png",
            content_type,
            lang=lang or ctx.coordinator.current_language,
        )
    except ValidationError as e:
        key = (
            "notifications.fileSizeLimit"
            if e.code == ErrorCodes.UPLOAD_TOO_LARGE
            else "notifications.pleaseSelectImageFile"
        )
        ctx.notifications.notify(ctx.t(key), level="error")
        raise http_error(e) from e
    except ApiError as e:
        _api_failed(ctx, e)
        raise http_error(e) from e
    return _result(ctx, response)


@api_router.post("/payload")
async def payload(
    fields: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """Form fields → payload text (qrText passes through untouched)."""
    text = prepare_text_request(fields)
    return {"text": text, "fields": parse_payload_text(text)}
