"""
User-visible notification feed (toast equivalent).

Components push messages here; the UI drains them. A category lets one
component replace its own previous message instead of stacking duplicates
(the language coordinator relies on this).
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ipsqr.domain.constants import NOTIFICATION_LEVELS, NOTIFICATION_MAX_ITEMS

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """Single user-facing message."""
    message: str
    level: str = "info"
    category: str | None = None
    created_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "level": self.level,
            "category": self.category,
            "createdAt": self.created_at,
        }


class NotificationCenter:
    """Bounded FIFO of notifications (oldest dropped first)."""

    def __init__(self, max_items: int = NOTIFICATION_MAX_ITEMS):
        self._items: deque[Notification] = deque(maxlen=max_items)

    def notify(
        self,
        message: str,
        level: str = "info",
        category: str | None = None,
    ) -> Notification:
        """
        Push a notification.

        Args:
            message: user-facing text
            level: info, success, warning, error
            category: optional grouping key

        Returns:
            the stored Notification
        """
        if level not in NOTIFICATION_LEVELS:
            raise ValueError(f"Invalid notification level: {level}")

        notification = Notification(message=message, level=level, category=category)
        self._items.append(notification)
        logger.debug(f"Notification [{level}] {message}")
        return notification

    def replace_category(
        self,
        category: str,
        message: str,
        level: str = "info",
    ) -> Notification:
        """Drop every notification of category, then push one."""
        self._items = deque(
            (n for n in self._items if n.category != category),
            maxlen=self._items.maxlen,
        )
        return self.notify(message, level=level, category=category)

    def recent(self, category: str | None = None) -> list[Notification]:
        """Current notifications (oldest first), optionally by category."""
        if category is None:
            return list(self._items)
        return [n for n in self._items if n.category == category]

    def drain(self) -> list[Notification]:
        """Return and remove all notifications."""
        items = list(self._items)
        self._items.clear()
        return items

    def __len__(self) -> int:
        return len(self._items)
