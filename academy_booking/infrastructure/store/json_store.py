from __future__ import annotations

import hashlib
import json
import logging
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from academy_booking.application.ports.key_value_store import KeyValueStorePort

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class JsonKeyValueStore(KeyValueStorePort):
    def __init__(self, data_dir: str = "./data/drafts") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, key: str) -> threading.Lock:
        """Get or create a lock for a key."""
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _get_file_path(self, key: str) -> Path:
        """File name is the sanitized key plus a short hash so distinct keys never collide."""
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]
        return self._data_dir / f"{_UNSAFE.sub('_', key)}.{digest}.json"

    def _load(self, key: str) -> dict[str, Any] | None:
        file_path = self._get_file_path(key)
        if not file_path.exists():
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            # A corrupted file reads as missing
            self._logger.warning("Unreadable store file", extra={"draft_key": key, "reason": str(e)})
            return None
        return data if isinstance(data, dict) else None

    def _save(self, key: str, data: dict[str, Any]) -> None:
        """Save data to JSON file atomically."""
        file_path = self._get_file_path(key)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            # Atomic rename
            temp_path.replace(file_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        with self._get_lock(key):
            data = self._load(key)
            if data is None:
                return None
            value = data.get("value")
            return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._get_lock(key):
            self._save(key, {"key": key, "value": value, "updated_at": datetime.now().timestamp()})

    def remove(self, key: str) -> None:
        with self._get_lock(key):
            self._get_file_path(key).unlink(missing_ok=True)
