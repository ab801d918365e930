# Overview: Small JSON-file cache used as the fallback copy of tenant settings.

from __future__ import annotations

import json
import os
import threading
from typing import Any

from flask import current_app

from ..extensions import LOCAL_CACHE_KEY


class LocalCache:
    """
    Key-value cache persisted as one JSON document.

    Keys are "<tenant_id>:<name>". With path=None the cache lives in memory
    only. Write failures keep the in-memory copy and are logged.
    """

    def __init__(self, path: str | None = None):
        self.path = path
        self._lock = threading.Lock()
        self._data: dict[str, Any] = self._read_file()

    @staticmethod
    def key(tenant_id: int, name: str) -> str:
        return f"{tenant_id}:{name}"

    def _read_file(self) -> dict:
        if not self.path or not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_file(self) -> None:
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(self._data, fh, sort_keys=True)
        os.replace(tmp_path, self.path)

    def load(self, key: str, fallback=None):
        with self._lock:
            if key not in self._data:
                return fallback
            return json.loads(json.dumps(self._data[key]))

    def save(self, key: str, value) -> None:
        with self._lock:
            self._data[key] = value
            try:
                self._write_file()
            except OSError:
                current_app.logger.warning("Could not persist local cache to %s", self.path, exc_info=True)


def get_local_cache() -> LocalCache:
    """The app-wide cache created by the application factory."""
    cache = current_app.extensions.get(LOCAL_CACHE_KEY)
    if cache is None:
        cache = LocalCache()
        current_app.extensions[LOCAL_CACHE_KEY] = cache
    return cache
