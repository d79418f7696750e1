"""
API layer: NBS IPS QR remote API.

Role:
- payload text and /gen request bodies (payload.py)
- async HTTP client with timeout/network error mapping (client.py)
"""

from .client import NbsQrClient, validate_upload
from .payload import (
    build_gen_request,
    build_payload_text,
    parse_payload_text,
    prepare_text_request,
)

__all__ = [
    "NbsQrClient",
    "validate_upload",
    "build_gen_request",
    "build_payload_text",
    "parse_payload_text",
    "prepare_text_request",
]
