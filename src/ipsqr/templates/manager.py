"""
Template manager: CRUD + search + usage tracking + import/export.

Rules:
- the whole collection lives under one storage key as a flat JSON array
- every mutation persists the full collection immediately
- a failed write raises StorageError but the in-memory change is kept
- malformed persisted data → warning + empty collection
- not-found is not an error: update → None, delete → False, increment → no-op
- import de-duplicates by (name, endpoint), never by id
"""

import json
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ipsqr.core.ids import generate_template_id
from ipsqr.core.storage import KeyValueStore
from ipsqr.domain.constants import (
    DEFAULT_METHOD,
    EXPORT_FILENAME_PREFIX,
    IMPORT_FILE_EXTENSION,
    TEMPLATES_STORAGE_KEY,
)
from ipsqr.domain.errors import ErrorCodes, StorageError, ValidationError
from ipsqr.domain.schemas import (
    ExportDocument,
    ImportResult,
    Template,
    TemplateStatistics,
)

logger = logging.getLogger(__name__)

# fields update() never overwrites
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})

# fields update() may change
UPDATABLE_FIELDS = frozenset({
    "name", "description", "data", "endpoint", "method", "usage_count", "last_used",
})

# camelCase aliases accepted by update()
FIELD_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "usageCount": "usage_count",
    "lastUsed": "last_used",
}


# =============================================================================
# Validation
# =============================================================================

def is_valid_template(entry: Any) -> bool:
    """
    Minimal shape check for imported entries.

    Rules:
    - mapping
    - name: str
    - endpoint: str
    - data: present and not None
    """
    return (
        isinstance(entry, dict)
        and isinstance(entry.get("name"), str)
        and isinstance(entry.get("endpoint"), str)
        and entry.get("data") is not None
    )


def _checked_value(attr: str, value: Any) -> Any:
    """
    Type-check one update() value and return it normalized.

    Rules:
    - name, endpoint, method: str
    - description: str (None → "")
    - data: mapping (None → {}), copied
    - usage_count: int >= 0
    - last_used: str or None

    Raises:
        ValidationError: INVALID_TEMPLATE
    """
    if attr == "data":
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return dict(value)
    elif attr == "description":
        if value is None:
            return ""
        if isinstance(value, str):
            return value
    elif attr == "usage_count":
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
    elif attr == "last_used":
        if value is None or isinstance(value, str):
            return value
    elif isinstance(value, str):
        return value

    raise ValidationError(
        ErrorCodes.INVALID_TEMPLATE,
        f"Invalid value for template field '{attr}'",
        field=attr,
        value_type=type(value).__name__,
    )


def _now() -> str:
    return datetime.now(UTC).isoformat()


# =============================================================================
# Template Manager
# =============================================================================

class TemplateManager:
    """
    Keyed collection of templates over a KeyValueStore.

    Constructed once at startup and passed to whoever needs it.

    Usage:
        manager = TemplateManager(JsonFileStore(Path("data/store.json")))
        tpl = manager.add("Electric Bill", "", {"K": "PR"}, "/gen")
        manager.increment_usage(tpl.id)
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = TEMPLATES_STORAGE_KEY,
    ):
        """
        Args:
            store: persisted key-value store
            storage_key: key holding the serialized collection
        """
        self.store = store
        self.storage_key = storage_key
        self._templates: list[Template] = self._load()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load(self) -> list[Template]:
        """Rehydrate from the store; anything malformed → empty collection."""
        raw = self.store.get_item(self.storage_key)
        if not raw:
            return []

        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise ValueError(f"expected list, got {type(entries).__name__}")
            templates = [Template.from_dict(entry) for entry in entries]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Persisted templates unreadable, starting empty: {e}")
            return []

        logger.debug(f"Loaded {len(templates)} templates from '{self.storage_key}'")
        return templates

    def _save(self) -> None:
        """
        Write the full collection.

        Raises:
            StorageError: propagated from the store (memory NOT rolled back)
        """
        payload = json.dumps(
            [t.to_dict() for t in self._templates],
            ensure_ascii=False,
        )
        self.store.set_item(self.storage_key, payload)

    def reload(self) -> None:
        """Discard memory and re-read the store (another writer may have won)."""
        self._templates = self._load()

    # =========================================================================
    # Create
    # =========================================================================

    def add(
        self,
        name: str,
        description: str,
        data: dict[str, Any],
        endpoint: str,
        method: str = DEFAULT_METHOD,
    ) -> Template:
        """
        Create and persist a new template.

        No uniqueness check here; callers decide (see save_from_form).

        Args:
            name: display name
            description: free text
            data: payment field bag (passed through unchanged)
            endpoint: logical endpoint (/gen, /generate, /validate, /upload)
            method: HTTP verb, carried only

        Returns:
            detached copy of the created Template

        Raises:
            StorageError: write failed (template still added in memory)
        """
        now = _now()
        template = Template(
            id=generate_template_id(),
            name=name,
            description=description or "",
            data=dict(data),
            endpoint=endpoint,
            method=method or DEFAULT_METHOD,
            created_at=now,
            updated_at=now,
            usage_count=0,
            last_used=None,
        )

        self._templates.append(template)
        self._save()
        return template.copy()

    def save_from_form(
        self,
        name: str,
        description: str,
        data: dict[str, Any],
        endpoint: str,
        method: str = DEFAULT_METHOD,
        replace: bool = False,
    ) -> Template:
        """
        Save the current form as a template (UI save action).

        An existing template with the same name is replaced only when
        replace=True: the old record is deleted and a fresh one added.

        Raises:
            ValidationError: MISSING_REQUIRED_FIELD, EMPTY_TEMPLATE_DATA,
                TEMPLATE_NAME_EXISTS
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError(
                ErrorCodes.MISSING_REQUIRED_FIELD,
                "Template name is required",
                field="name",
            )
        if not data:
            raise ValidationError(
                ErrorCodes.EMPTY_TEMPLATE_DATA,
                "No template data available",
            )

        existing = next((t for t in self._templates if t.name == name), None)
        if existing is not None:
            if not replace:
                raise ValidationError(
                    ErrorCodes.TEMPLATE_NAME_EXISTS,
                    f"A template named '{name}' already exists",
                    template_id=existing.id,
                )
            self.delete(existing.id)

        return self.add(name, (description or "").strip(), data, endpoint, method)

    def duplicate(self, template_id: str, new_name: str) -> Template | None:
        """
        Copy data/endpoint/method under a new name (usage starts at 0).

        Returns:
            the new Template, or None if template_id is unknown
        """
        source = self._find(template_id)
        if source is None:
            return None

        return self.add(
            new_name,
            source.description,
            dict(source.data),
            source.endpoint,
            source.method,
        )

    # =========================================================================
    # Read
    # =========================================================================

    def get(self, template_id: str) -> Template | None:
        """Point lookup (detached copy)."""
        template = self._find(template_id)
        return template.copy() if template else None

    def list_templates(self) -> list[Template]:
        """Snapshot of the collection in insertion order."""
        return [t.copy() for t in self._templates]

    def search(self, query: str) -> list[Template]:
        """
        Case-insensitive substring match on name, description and endpoint.

        Empty query → all templates. No ranking.
        """
        term = (query or "").lower()
        return [
            t.copy()
            for t in self._templates
            if term in t.name.lower()
            or term in (t.description or "").lower()
            or term in t.endpoint.lower()
        ]

    def filter_by_endpoint(self, endpoint: str) -> list[Template]:
        """Exact endpoint match."""
        return [t.copy() for t in self._templates if t.endpoint == endpoint]

    def statistics(self) -> TemplateStatistics:
        """Total, per-endpoint counts, total and average usage."""
        endpoints: dict[str, int] = {}
        total_usage = 0

        for template in self._templates:
            endpoints[template.endpoint] = endpoints.get(template.endpoint, 0) + 1
            total_usage += template.usage_count or 0

        total = len(self._templates)
        return TemplateStatistics(
            total=total,
            endpoints=endpoints,
            total_usage=total_usage,
            average_usage=round(total_usage / total, 2) if total else 0.0,
        )

    def __len__(self) -> int:
        return len(self._templates)

    # =========================================================================
    # Update
    # =========================================================================

    def update(self, template_id: str, updates: dict[str, Any]) -> Template | None:
        """
        Merge fields into an existing template and refresh updated_at.

        Accepts snake_case or camelCase keys. id and created_at are ignored.
        Every value is checked before any is applied, so a rejected update
        leaves the template untouched.

        Returns:
            updated Template, or None if template_id is unknown

        Raises:
            ValidationError: INVALID_TEMPLATE (wrong value type)
            StorageError: write failed (change still applied in memory)
        """
        template = self._find(template_id)
        if template is None:
            return None

        changes: dict[str, Any] = {}
        for key, value in updates.items():
            attr = FIELD_ALIASES.get(key, key)
            if attr in IMMUTABLE_FIELDS or attr == "updated_at":
                continue
            if attr not in UPDATABLE_FIELDS:
                logger.debug(f"Ignoring unknown template field '{key}'")
                continue
            changes[attr] = _checked_value(attr, value)

        for attr, value in changes.items():
            setattr(template, attr, value)

        template.updated_at = _now()
        self._save()
        return template.copy()

    def increment_usage(self, template_id: str) -> None:
        """usage_count += 1, last_used = now. No-op for unknown ids."""
        template = self._find(template_id)
        if template is None:
            return

        template.usage_count += 1
        template.last_used = _now()
        self._save()

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, template_id: str) -> bool:
        """
        Remove a template.

        Returns:
            True if removed, False if template_id is unknown
        """
        for index, template in enumerate(self._templates):
            if template.id == template_id:
                del self._templates[index]
                self._save()
                return True
        return False

    def clear(self) -> None:
        """Remove every template."""
        logger.info(f"Clearing {len(self._templates)} templates")
        self._templates = []
        self._save()

    # =========================================================================
    # Import / Export
    # =========================================================================

    def export(self) -> dict[str, Any]:
        """Export envelope {version, exportDate, templates} (JSON-ready)."""
        document = ExportDocument(
            export_date=_now(),
            templates=[t.copy() for t in self._templates],
        )
        return document.to_dict()

    def export_json(self) -> str:
        """export() as indented JSON text."""
        return json.dumps(self.export(), indent=2, ensure_ascii=False)

    @staticmethod
    def export_filename(now: datetime | None = None) -> str:
        """nbs-ips-templates-YYYY-MM-DD.json"""
        day = (now or datetime.now(UTC)).strftime("%Y-%m-%d")
        return f"{EXPORT_FILENAME_PREFIX}-{day}{IMPORT_FILE_EXTENSION}"

    def import_templates(
        self,
        payload: str | bytes | dict[str, Any],
        overwrite: bool = False,
    ) -> ImportResult:
        """
        Import an export envelope record by record.

        Only a parse failure aborts. After that each entry is:
        - invalid shape → skipped + error message
        - duplicate (name, endpoint) + overwrite → merge description/data/method
        - duplicate (name, endpoint) → skipped
        - otherwise → added under a new id

        A failed write does not stop the loop: the entry stays in memory,
        counts as imported, is listed in errors and marks the result as not
        persisted (storage_error holds the error code).

        Args:
            payload: JSON text/bytes or parsed mapping
            overwrite: merge duplicates instead of skipping

        Returns:
            ImportResult(imported, skipped, errors, storage_error)

        Raises:
            ValidationError: INVALID_IMPORT_FORMAT
        """
        document = self._parse_import(payload)
        result = ImportResult()

        for index, entry in enumerate(document["templates"], start=1):
            if not is_valid_template(entry):
                result.errors.append(f"Template {index}: Invalid structure")
                result.skipped += 1
                continue

            existing = next(
                (
                    t for t in self._templates
                    if t.name == entry["name"] and t.endpoint == entry["endpoint"]
                ),
                None,
            )

            try:
                if existing is not None:
                    if not overwrite:
                        result.skipped += 1
                        continue
                    self.update(existing.id, {
                        "description": entry.get("description") or "",
                        "data": entry["data"],
                        "method": entry.get("method") or DEFAULT_METHOD,
                    })
                else:
                    self.add(
                        entry["name"],
                        entry.get("description") or "",
                        entry["data"],
                        entry["endpoint"],
                        entry.get("method") or DEFAULT_METHOD,
                    )
                result.imported += 1
            except StorageError as e:
                result.imported += 1
                result.errors.append(f"Template {index}: {e.message}")
                result.storage_error = e.code
            except ValidationError as e:
                result.errors.append(f"Template {index}: {e.message}")
                result.skipped += 1
            except (TypeError, ValueError) as e:
                result.errors.append(f"Template {index}: {e}")
                result.skipped += 1

        if result.storage_error:
            logger.error(f"Imported templates not persisted: {result.storage_error}")
        logger.info(
            f"Import finished: {result.imported} imported, "
            f"{result.skipped} skipped, {len(result.errors)} errors"
        )
        return result

    def import_file(self, path: Path, overwrite: bool = False) -> ImportResult:
        """
        Import from a user-supplied .json file.

        Raises:
            ValidationError: INVALID_IMPORT_FILE, INVALID_IMPORT_FORMAT
        """
        path = Path(path)
        if path.suffix.lower() != IMPORT_FILE_EXTENSION:
            raise ValidationError(
                ErrorCodes.INVALID_IMPORT_FILE,
                "Please select a JSON file",
                filename=path.name,
            )

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationError(
                ErrorCodes.INVALID_IMPORT_FILE,
                f"Could not read import file: {e}",
                filename=path.name,
            ) from e

        return self.import_templates(text, overwrite=overwrite)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _find(self, template_id: str) -> Template | None:
        return next((t for t in self._templates if t.id == template_id), None)

    @staticmethod
    def _parse_import(payload: str | bytes | dict[str, Any]) -> dict[str, Any]:
        if isinstance(payload, dict):
            document = payload
        else:
            try:
                document = json.loads(payload)
            except (TypeError, ValueError) as e:
                raise ValidationError(
                    ErrorCodes.INVALID_IMPORT_FORMAT,
                    f"Invalid JSON format: {e}",
                ) from e

        if not isinstance(document, dict) or not isinstance(document.get("templates"), list):
            raise ValidationError(
                ErrorCodes.INVALID_IMPORT_FORMAT,
                "Invalid JSON format: Invalid template format",
            )
        return document
