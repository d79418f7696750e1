"""
IPS QR payload text.

Wire format: KEY:VALUE pairs joined by "|" in fixed field order,
e.g. "K:PR|V:01|C:1|R:160000000000000012|N:EPS Beograd".
"""

import logging
from collections.abc import Mapping
from typing import Any

from ipsqr.domain.constants import (
    GEN_OPTIONAL_FIELDS,
    GEN_REQUIRED_FIELDS,
    PAYLOAD_FIELD_ORDER,
    PAYLOAD_KEY_SEPARATOR,
    PAYLOAD_SEPARATOR,
)
from ipsqr.domain.errors import ErrorCodes, ValidationError

logger = logging.getLogger(__name__)

# form field holding raw payload text for /validate
RAW_TEXT_FIELD = "qrText"


def _normalize_line_breaks(value: str) -> str:
    return value.replace("\r\n", "\n").replace("\n", "\r\n")


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def build_payload_text(fields: Mapping[str, Any]) -> str:
    """
    Build payload text from form fields.

    Empty fields are skipped, unknown keys ignored, no trailing delimiter.
    Line breaks inside values become CRLF.
    """
    parts = []
    for key in PAYLOAD_FIELD_ORDER:
        value = fields.get(key)
        if _present(value):
            parts.append(
                f"{key}{PAYLOAD_KEY_SEPARATOR}{_normalize_line_breaks(str(value))}"
            )
    return PAYLOAD_SEPARATOR.join(parts)


def prepare_text_request(fields: Mapping[str, Any]) -> str:
    """Raw qrText wins over individual fields."""
    raw = fields.get(RAW_TEXT_FIELD)
    if _present(raw):
        return str(raw)
    return build_payload_text(fields)


def build_gen_request(fields: Mapping[str, Any]) -> dict[str, str]:
    """
    JSON body for /gen.

    Raises:
        ValidationError: a required field (K, V, C, R, N) is missing
    """
    missing = [key for key in GEN_REQUIRED_FIELDS if not _present(fields.get(key))]
    if missing:
        raise ValidationError(
            ErrorCodes.MISSING_REQUIRED_FIELD,
            f"Missing required fields: {', '.join(missing)}",
            fields=missing,
        )

    request = {key: str(fields[key]) for key in GEN_REQUIRED_FIELDS}
    for key in GEN_OPTIONAL_FIELDS:
        if _present(fields.get(key)):
            request[key] = str(fields[key])
    return request


def parse_payload_text(text: str) -> dict[str, str]:
    """
    Split payload text into {key: value}, preserving order.

    Each segment splits on its first ":"; segments without one are skipped.
    """
    result: dict[str, str] = {}
    for segment in text.strip().split(PAYLOAD_SEPARATOR):
        if PAYLOAD_KEY_SEPARATOR not in segment:
            if segment:
                logger.debug(f"Skipping payload segment without key: {segment!r}")
            continue
        key, value = segment.split(PAYLOAD_KEY_SEPARATOR, 1)
        key = key.strip()
        if key:
            result[key] = value
    return result
