"""
Error definitions.

Error categories:
- validation: missing field, malformed import entry, unsupported language
- network: timeout, connection failure (no automatic retry)
- storage: quota exceeded, write failure (in-memory state is kept)
- not-found: NOT an exception; managers return None/False instead

Usage:
    raise ValidationError(ErrorCodes.MISSING_REQUIRED_FIELD, "K is required", field="K")
"""

from typing import Any


class IpsQrError(Exception):
    """
    Base error carrying a machine-readable code.

    message is user-facing; context holds structured details for logs/JSON.
    """

    def __init__(self, code: str, message: str = "", **context: Any) -> None:
        self.code = code
        self.message = message or code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        base = f"[{self.code}] {self.message}"
        return f"{base} ({ctx_str})" if ctx_str else base

    def to_dict(self) -> dict[str, Any]:
        """For logs/JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


class ValidationError(IpsQrError):
    """Input rejected before any state changed."""


class UnsupportedLanguageError(ValidationError):
    """Language code outside the supported set."""

    def __init__(self, language: str) -> None:
        super().__init__(
            ErrorCodes.UNSUPPORTED_LANGUAGE,
            f"Unsupported language: {language}",
            language=language,
        )


class ApiError(IpsQrError):
    """Remote QR API could not be reached or answered unexpectedly."""


class StorageError(IpsQrError):
    """
    Persisting to the store failed.

    The in-memory change that triggered the write is NOT rolled back.
    """


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """Error code constants."""

    # === Validation ===
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_TEMPLATE = "INVALID_TEMPLATE"
    TEMPLATE_NAME_EXISTS = "TEMPLATE_NAME_EXISTS"
    EMPTY_TEMPLATE_DATA = "EMPTY_TEMPLATE_DATA"
    INVALID_IMPORT_FORMAT = "INVALID_IMPORT_FORMAT"
    INVALID_IMPORT_FILE = "INVALID_IMPORT_FILE"
    UNSUPPORTED_LANGUAGE = "UNSUPPORTED_LANGUAGE"
    INVALID_ENDPOINT = "INVALID_ENDPOINT"
    INVALID_UPLOAD_TYPE = "INVALID_UPLOAD_TYPE"
    UPLOAD_TOO_LARGE = "UPLOAD_TOO_LARGE"
    INVALID_ENCODING = "INVALID_ENCODING"

    # === Network ===
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"

    # === Storage ===
    STORAGE_QUOTA_EXCEEDED = "STORAGE_QUOTA_EXCEEDED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
    STORAGE_LOCK_TIMEOUT = "STORAGE_LOCK_TIMEOUT"
