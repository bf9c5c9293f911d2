from finbox.storage.json_store import (
    DEFAULT_SETTINGS,
    SETTINGS_KEY,
    STORAGE_KEY,
    JsonStore,
    export_conversations,
    export_filename,
)

__all__ = [
    "DEFAULT_SETTINGS",
    "SETTINGS_KEY",
    "STORAGE_KEY",
    "JsonStore",
    "export_conversations",
    "export_filename",
]
