"""
Data schemas.

Serialized keys use camelCase (createdAt, usageCount, ...) so JSON exports
stay interchangeable with the browser build of the app.
"""

import base64
from dataclasses import dataclass, field
from typing import Any

from .constants import DEFAULT_METHOD, EXPORT_FORMAT_VERSION

# =============================================================================
# Template
# =============================================================================

@dataclass
class Template:
    """
    Reusable payment-form payload.

    data is an opaque field bag. Known IPS keys are K, V, C, R, N, I, P,
    SF, S and RO, but unknown keys pass through untouched.
    """
    id: str
    name: str
    endpoint: str
    data: dict[str, Any] = field(default_factory=dict)
    description: str = ""
    method: str = DEFAULT_METHOD

    created_at: str = ""
    updated_at: str = ""

    usage_count: int = 0
    last_used: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "data": dict(self.data),
            "endpoint": self.endpoint,
            "method": self.method,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "usageCount": self.usage_count,
            "lastUsed": self.last_used,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Template":
        # legacy records may lack usage fields
        return cls(
            id=data["id"],
            name=data["name"],
            endpoint=data["endpoint"],
            data=dict(data.get("data") or {}),
            description=data.get("description") or "",
            method=data.get("method") or DEFAULT_METHOD,
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            usage_count=int(data.get("usageCount") or 0),
            last_used=data.get("lastUsed") or None,
        )

    def copy(self) -> "Template":
        """Detached copy (data mapping included)."""
        return Template.from_dict(self.to_dict())


# =============================================================================
# Import / Export
# =============================================================================

@dataclass
class ImportResult:
    """
    Per-record outcome of an import.

    storage_error is the StorageError code when a write failed; the
    imported records are then held in memory only.
    """
    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    storage_error: str | None = None

    @property
    def persisted(self) -> bool:
        return self.storage_error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "persisted": self.persisted,
        }


@dataclass
class ExportDocument:
    """Export envelope: {version, exportDate, templates}."""
    export_date: str
    templates: list[Template] = field(default_factory=list)
    version: str = EXPORT_FORMAT_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "exportDate": self.export_date,
            "templates": [t.to_dict() for t in self.templates],
        }


@dataclass
class TemplateStatistics:
    """Read-only aggregate over the collection."""
    total: int = 0
    endpoints: dict[str, int] = field(default_factory=dict)
    total_usage: int = 0
    average_usage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "endpoints": dict(self.endpoints),
            "totalUsage": self.total_usage,
            "averageUsage": self.average_usage,
        }


# =============================================================================
# Remote API
# =============================================================================

@dataclass
class ApiResponse:
    """
    Normalized NBS API response.

    success reflects the HTTP status only. The bank reports its own verdict
    in the JSON status block {"s": {"code": 0, "desc": "..."}}; see api_ok.
    """
    success: bool
    status: int
    data: Any = None
    content_type: str = ""
    is_image: bool = False

    @property
    def api_ok(self) -> bool:
        """HTTP success AND (for JSON) bank status code 0."""
        if not self.success:
            return False
        if self.is_image:
            return True
        status = self.data.get("s") if isinstance(self.data, dict) else None
        return isinstance(status, dict) and status.get("code") == 0

    @property
    def error_message(self) -> str | None:
        """s.desc from the bank, or None."""
        if isinstance(self.data, dict):
            status = self.data.get("s")
            if isinstance(status, dict) and status.get("desc"):
                return str(status["desc"])
        return None

    @property
    def validation_errors(self) -> list[str]:
        if isinstance(self.data, dict) and isinstance(self.data.get("e"), list):
            return [str(e) for e in self.data["e"]]
        return []

    def to_dict(self) -> dict[str, Any]:
        data = self.data
        if self.is_image and isinstance(data, bytes):
            data = base64.b64encode(data).decode("ascii")
        return {
            "success": self.success,
            "status": self.status,
            "apiOk": self.api_ok,
            "contentType": self.content_type,
            "isImage": self.is_image,
            "data": data,
        }
