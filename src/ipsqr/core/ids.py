"""
ID generation: template_id

Rules:
- template_id is assigned once at creation and never changes
- format matches the browser build: tpl_{epoch_ms}_{9 base36 chars}
"""

import uuid
from datetime import UTC, datetime

from ipsqr.domain.constants import TEMPLATE_ID_PREFIX

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_SUFFIX_LENGTH = 9


def generate_template_id(now: datetime | None = None) -> str:
    """
    Generate a template ID.

    Uniqueness: millisecond timestamp + UUID v4 derived suffix.
    Format: tpl_{epoch_ms}_{suffix}

    Args:
        now: timestamp override (tests)

    Returns:
        template_id string
    """
    now = now or datetime.now(UTC)
    epoch_ms = int(now.timestamp() * 1000)
    suffix = _to_base36(uuid.uuid4().int)[:_SUFFIX_LENGTH]

    return f"{TEMPLATE_ID_PREFIX}{epoch_ms}_{suffix}"


def _to_base36(value: int) -> str:
    """Non-negative int → base36 string (lowercase)."""
    if value == 0:
        return "0"

    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[rem])
    return "".join(reversed(digits))
