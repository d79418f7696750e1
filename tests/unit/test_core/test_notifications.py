"""
test_notifications.py - notification feed
"""

import pytest

from ipsqr.core.notifications import NotificationCenter


class TestNotificationCenter:

    def test_notify_and_recent(self):
        center = NotificationCenter()

        center.notify("Saved", level="success")

        items = center.recent()
        assert len(items) == 1
        assert items[0].message == "Saved"
        assert items[0].level == "success"

    def test_invalid_level_rejected(self):
        with pytest.raises(ValueError):
            NotificationCenter().notify("x", level="fatal")

    def test_bounded(self):
        center = NotificationCenter(max_items=3)

        for i in range(5):
            center.notify(f"n{i}")

        assert [n.message for n in center.recent()] == ["n2", "n3", "n4"]

    def test_replace_category_keeps_single_entry(self):
        center = NotificationCenter()
        center.notify("other")

        center.replace_category("language", "Language changed to English")
        center.replace_category("language", "Language changed to Latinica")

        language = center.recent("language")
        assert len(language) == 1
        assert language[0].message == "Language changed to Latinica"
        assert len(center) == 2

    def test_drain_empties(self):
        center = NotificationCenter()
        center.notify("a")
        center.notify("b")

        drained = center.drain()

        assert [n.message for n in drained] == ["a", "b"]
        assert len(center) == 0

    def test_to_dict(self):
        notification = NotificationCenter().notify("Hi", category="templates")

        data = notification.to_dict()

        assert data["message"] == "Hi"
        assert data["level"] == "info"
        assert data["category"] == "templates"
        assert "createdAt" in data
