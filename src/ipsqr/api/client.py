"""
NBS IPS QR API client.

Endpoints (base https://nbs.rs/QRcode/api/qr/v1):
- POST /gen[/size]       JSON fields → PNG image
- POST /generate[/size]  payload text → JSON + base64 image
- POST /validate         payload text → JSON verdict
- POST /upload           multipart image → JSON verdict

Every request carries ?lang=<language>. Timeout is fixed; failures are
reported once and never retried.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ipsqr.domain.constants import (
    API_BASE_URL,
    API_TIMEOUT_SECONDS,
    DEFAULT_LANGUAGE,
    ENDPOINT_GEN,
    ENDPOINT_GENERATE,
    ENDPOINT_UPLOAD,
    ENDPOINT_VALIDATE,
    ENDPOINTS,
    SIZED_ENDPOINTS,
    UPLOAD_ALLOWED_CONTENT_TYPES,
    UPLOAD_MAX_SIZE_BYTES,
)
from ipsqr.domain.errors import ApiError, ErrorCodes, ValidationError
from ipsqr.domain.schemas import ApiResponse

from .payload import build_gen_request

logger = logging.getLogger(__name__)


class NbsQrClient:
    """
    Async client for the national bank QR API.

    Usage:
        client = NbsQrClient()
        response = await client.validate("K:PR|V:01|...", lang="en")
        if response.api_ok:
            ...

    Args:
        base_url: API root
        timeout: seconds per request
        language: default ?lang= value
        transport: httpx transport override (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = API_TIMEOUT_SECONDS,
        language: str = DEFAULT_LANGUAGE,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.language = language
        self._transport = transport

    def build_url(
        self,
        endpoint: str,
        size: int | None = None,
        lang: str | None = None,
    ) -> str:
        """
        Full request URL.

        The size suffix applies to /gen and /generate only.

        Raises:
            ValidationError: unknown endpoint
        """
        if endpoint not in ENDPOINTS:
            raise ValidationError(
                ErrorCodes.INVALID_ENDPOINT,
                f"Unknown endpoint: {endpoint}",
                endpoint=endpoint,
            )

        url = f"{self.base_url}{endpoint}"
        if size and endpoint in SIZED_ENDPOINTS:
            url += f"/{size}"
        if lang:
            separator = "&" if "?" in url else "?"
            url += f"{separator}lang={lang}"
        return url

    # =========================================================================
    # Endpoints
    # =========================================================================

    async def generate_image(
        self,
        fields: Mapping[str, Any],
        size: int | None = None,
        lang: str | None = None,
    ) -> ApiResponse:
        """POST /gen with structured fields; a PNG is expected back."""
        body = build_gen_request(fields)
        return await self._request(
            ENDPOINT_GEN, size=size, lang=lang, json=body,
        )

    async def generate_with_response(
        self,
        text: str,
        size: int | None = None,
        lang: str | None = None,
    ) -> ApiResponse:
        """POST /generate with payload text."""
        return await self._request(
            ENDPOINT_GENERATE, size=size, lang=lang,
            content=text.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )

    async def validate(self, text: str, lang: str | None = None) -> ApiResponse:
        """POST /validate with payload text."""
        return await self._request(
            ENDPOINT_VALIDATE, lang=lang,
            content=text.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )

    async def upload(
        self,
        image: bytes,
        filename: str,
        content_type: str,
        lang: str | None = None,
    ) -> ApiResponse:
        """
        POST /upload with a QR image.

        Raises:
            ValidationError: not PNG/JPEG, or larger than 5 MB
        """
        validate_upload(image, content_type)
        return await self._request(
            ENDPOINT_UPLOAD, lang=lang,
            files={"file": (filename, image, content_type)},
        )

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _request(
        self,
        endpoint: str,
        size: int | None = None,
        lang: str | None = None,
        **kwargs: Any,
    ) -> ApiResponse:
        url = self.build_url(endpoint, size=size, lang=lang or self.language)
        headers = {"Accept": "application/json", **kwargs.pop("headers", {})}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"API timeout for {endpoint}: {e}")
            raise ApiError(
                ErrorCodes.TIMEOUT,
                "The request took too long to complete",
                endpoint=endpoint,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"API network error for {endpoint}: {e}")
            raise ApiError(
                ErrorCodes.NETWORK_ERROR,
                "Unable to connect to the API server",
                endpoint=endpoint,
            ) from e

        return _to_api_response(response, endpoint)


def validate_upload(image: bytes, content_type: str) -> None:
    """
    Raises:
        ValidationError: unsupported type or too large
    """
    if content_type not in UPLOAD_ALLOWED_CONTENT_TYPES:
        raise ValidationError(
            ErrorCodes.INVALID_UPLOAD_TYPE,
            "Please select a PNG or JPEG image",
            content_type=content_type,
        )
    if len(image) > UPLOAD_MAX_SIZE_BYTES:
        raise ValidationError(
            ErrorCodes.UPLOAD_TOO_LARGE,
            "File size must be less than 5MB",
            size=len(image),
            limit=UPLOAD_MAX_SIZE_BYTES,
        )


def _to_api_response(response: httpx.Response, endpoint: str) -> ApiResponse:
    content_type = response.headers.get("content-type", "")
    success = response.is_success

    if "image/" in content_type:
        return ApiResponse(
            success=success,
            status=response.status_code,
            data=response.content,
            content_type=content_type,
            is_image=True,
        )

    try:
        data = response.json()
    except ValueError:
        # error pages come back as HTML/plain text
        logger.warning(
            f"Non-JSON response from {endpoint} (status {response.status_code})"
        )
        data = response.text

    if not success:
        logger.warning(f"API {endpoint} returned HTTP {response.status_code}")

    return ApiResponse(
        success=success,
        status=response.status_code,
        data=data,
        content_type=content_type,
        is_image=False,
    )
