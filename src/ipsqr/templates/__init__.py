"""
Templates layer: reusable payment-form templates.

Role:
- template CRUD, search, usage tracking (manager.py)
- JSON import/export with (name, endpoint) de-duplication
"""

from .manager import (
    TemplateManager,
    is_valid_template,
)

__all__ = [
    "TemplateManager",
    "is_valid_template",
]
