"""
JSON key-value store for the inbox, the server-side stand-in for the
browser's localStorage. One file, two fixed keys:

    fin_ai_conversations   list of conversation dicts
    fin_ai_settings        {theme, notifications, soundEnabled, autoSave}

Best-effort cache, not a database: every operation logs failures and
reports them as False/None instead of raising.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

logger = logging.getLogger(__name__)

STORAGE_KEY = "fin_ai_conversations"
SETTINGS_KEY = "fin_ai_settings"

DEFAULT_SETTINGS = {
    "theme": "light",
    "notifications": True,
    "soundEnabled": True,
    "autoSave": True,
}


class JsonStore:
    """Single-file JSON store keyed like browser local storage."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        tmp.replace(self.path)

    def _set(self, key: str, value) -> bool:
        try:
            data = self._read()
        except (OSError, ValueError) as e:
            logger.warning("Store at %s unreadable, starting fresh: %s", self.path, e)
            data = {}
        data[key] = value
        try:
            self._write(data)
            return True
        except (OSError, TypeError) as e:
            logger.error("Error saving %s to %s: %s", key, self.path, e)
            return False

    # ── Conversations ────────────────────────────────────────────────────

    def save_conversations(self, conversations: list[dict]) -> bool:
        return self._set(STORAGE_KEY, conversations)

    def load_conversations(self) -> list[dict] | None:
        try:
            return self._read().get(STORAGE_KEY)
        except (OSError, ValueError) as e:
            logger.error("Error loading conversations: %s", e)
            return None

    def save_message(self, conversation_id: int, message: dict) -> bool:
        """Append a message to a stored conversation and refresh its snippet."""
        conversations = self.load_conversations() or []
        for conv in conversations:
            if conv.get("id") == conversation_id:
                conv.setdefault("messages", []).append(message)
                conv["snippet"] = message.get("content", "")[:30] + "..."
                conv["timeAgo"] = "0m"
                return self.save_conversations(conversations)
        logger.debug("save_message: conversation %s not stored, skipping", conversation_id)
        return True

    # ── Settings ─────────────────────────────────────────────────────────

    def save_settings(self, settings: dict) -> bool:
        return self._set(SETTINGS_KEY, settings)

    def load_settings(self) -> dict:
        try:
            stored = self._read().get(SETTINGS_KEY)
        except (OSError, ValueError) as e:
            logger.error("Error loading settings: %s", e)
            stored = None
        return dict(stored) if stored else dict(DEFAULT_SETTINGS)

    # ── Maintenance ──────────────────────────────────────────────────────

    def clear(self) -> bool:
        try:
            data = self._read()
            data.pop(STORAGE_KEY, None)
            data.pop(SETTINGS_KEY, None)
            self._write(data)
            return True
        except (OSError, ValueError) as e:
            logger.error("Error clearing storage: %s", e)
            return False


def export_filename(day: date | None = None) -> str:
    return f"conversations_{(day or date.today()).isoformat()}.json"


def export_conversations(conversations: list[dict], directory: str | Path) -> Path | None:
    """Write conversations as pretty JSON named by today's date. None on failure."""
    out = Path(directory) / export_filename()
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            json.dump(conversations, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError) as e:
        logger.error("Error exporting conversations: %s", e)
        return None
    logger.info("Exported %d conversations to %s", len(conversations), out)
    return out
