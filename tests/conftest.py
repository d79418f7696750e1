"""
Pytest fixtures shared by unit and e2e tests.

- stores: MemoryStore (fast) and JsonFileStore under tmp_path
- manager / translator / coordinator wired over those stores
- sample template payloads (IPS QR fields)
"""

from pathlib import Path
from typing import Any

import pytest
import yaml

from ipsqr.core.notifications import NotificationCenter
from ipsqr.core.storage import JsonFileStore, MemoryStore
from ipsqr.i18n.coordinator import LanguageCoordinator
from ipsqr.i18n.translator import Translator
from ipsqr.templates.manager import TemplateManager

# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Project root."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml path."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def file_store(tmp_path: Path) -> JsonFileStore:
    """Store file under tmp_path (not created until first write)."""
    return JsonFileStore(tmp_path / "data" / "store.json")


@pytest.fixture
def manager(memory_store: MemoryStore) -> TemplateManager:
    return TemplateManager(memory_store)


# =============================================================================
# i18n Fixtures
# =============================================================================

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def translator() -> Translator:
    return Translator.from_bundled()


@pytest.fixture
def notifications() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def coordinator(
    memory_store: MemoryStore,
    translator: Translator,
    notifications: NotificationCenter,
    clock: FakeClock,
) -> LanguageCoordinator:
    return LanguageCoordinator(
        memory_store,
        translator,
        notifications,
        debounce_seconds=0.5,
        clock=clock,
    )


# =============================================================================
# Sample Data
# =============================================================================

@pytest.fixture
def electric_bill() -> dict[str, Any]:
    """Electric bill template fields."""
    return {
        "name": "Electric Bill",
        "description": "Monthly EPS invoice",
        "endpoint": "/gen",
        "data": {
            "K": "PR",
            "V": "01",
            "C": "1",
            "R": "845000000040484987",
            "N": "JP EPS BEOGRAD",
        },
    }


@pytest.fixture
def sample_fields() -> dict[str, str]:
    """Complete IPS QR form fields."""
    return {
        "K": "PR",
        "V": "01",
        "C": "1",
        "R": "845000000040484987",
        "N": "JP EPS BEOGRAD\nBALKANSKA 13",
        "I": "RSD3596,13",
        "P": "MRĐO MAČKATOVIĆ",
        "SF": "189",
        "S": "UPLATA PO RAČUNU ZA EL. ENERGIJU",
        "RO": "97163220000111111111000",
    }
