"""
Core layer: persistence and shared services.

Role:
- key-value store with atomic writes and a file lock (storage.py)
- ID generation (ids.py)
- configuration (config.py)
- user-visible notification feed (notifications.py)
"""

from .config import load_config
from .ids import generate_template_id
from .notifications import Notification, NotificationCenter
from .storage import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    # storage
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    # ids
    "generate_template_id",
    # config
    "load_config",
    # notifications
    "Notification",
    "NotificationCenter",
]
