"""Local JSON file key-value adapter.

Implements the core KeyValueStore with one JSON file per key inside a
directory. Useful for running without a gist.
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Optional

from core.errors import StoreError


class JsonFileStore:
    """Thin file wrapper that satisfies the KeyValueStore contract."""

    def __init__(self, directory: str) -> None:
        self._directory = directory

    def _path(self, key: str) -> str:
        return os.path.join(self._directory, os.path.basename(key))

    def get(self, key: str) -> Optional[dict[str, Any]]:
        """Return the stored document for ``key`` or None if it does not exist."""

        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, ValueError) as e:
            raise StoreError(f"Could not read {path}: {e}") from e

    def put(self, key: str, document: dict[str, Any]) -> None:
        """Replace the document atomically via a temp file and rename."""

        path = self._path(key)
        try:
            os.makedirs(self._directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StoreError(f"Could not write {path}: {e}") from e
