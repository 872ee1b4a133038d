"""
Key-value settings persistence (custom webhook URL and friends).
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from ..interfaces.settings import SettingsStoreInterface
from .logging_config import get_logger

logger = get_logger("settings")

WEBHOOK_URL_KEY = "jarvis_webhook_url"


class InMemorySettingsStore(SettingsStoreInterface):
    """Ephemeral store, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class JsonSettingsStore(SettingsStoreInterface):
    """
    Settings persisted as a flat JSON object on disk.

    The file is re-read on every get() so edits made by another process (or
    the CLI ``set-webhook`` command) are picked up before the next request.
    """

    blocking = True

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read settings from {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with open(tmp_path, 'w') as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)


def save_webhook_url(store: SettingsStoreInterface, url: str) -> str:
    """
    Validate and persist a custom webhook URL.

    Raises:
        ValueError: If the URL is blank or not http(s)
    """
    url = (url or "").strip()
    if not url:
        raise ValueError("Please enter a valid webhook URL")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Webhook URL must be an http(s) URL: {url}")

    store.set(WEBHOOK_URL_KEY, url)
    logger.info("Webhook URL updated")
    return url


def get_webhook_url(store: Optional[SettingsStoreInterface]) -> Optional[str]:
    """Return the stored webhook override, or None when unset."""
    if store is None:
        return None
    value = store.get(WEBHOOK_URL_KEY)
    return value or None
