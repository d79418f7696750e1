"""Domain layer: constants, errors and schemas."""

from .errors import (
    ApiError,
    ErrorCodes,
    IpsQrError,
    StorageError,
    UnsupportedLanguageError,
    ValidationError,
)
from .schemas import (
    ApiResponse,
    ExportDocument,
    ImportResult,
    Template,
    TemplateStatistics,
)

__all__ = [
    # errors
    "IpsQrError",
    "ValidationError",
    "UnsupportedLanguageError",
    "ApiError",
    "StorageError",
    "ErrorCodes",
    # schemas
    "Template",
    "ImportResult",
    "ExportDocument",
    "TemplateStatistics",
    "ApiResponse",
]
