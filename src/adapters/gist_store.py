"""GitHub Gist key-value adapter.

Each key is a file inside one gist. ``put`` replaces the file content in a
single PATCH, so concurrent writers race and the last one wins.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Callable, Optional

from core.errors import StoreError

LOGGER = logging.getLogger(__name__)

GIST_API = "https://api.github.com/gists"
USER_AGENT = "Borderadar"


class GistKeyValueStore:
    """KeyValueStore backed by the files of a single gist."""

    def __init__(
        self,
        token: str,
        gist_id: str,
        timeout: float = 10,
        opener: Callable = urllib.request.urlopen,
    ) -> None:
        self._token = token
        self._gist_id = gist_id
        self._timeout = timeout
        self._opener = opener

    def _request(self, method: str, body: Optional[dict] = None) -> dict:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        request = urllib.request.Request(f"{GIST_API}/{self._gist_id}", data=data, method=method)
        request.add_header("Authorization", f"token {self._token}")
        request.add_header("User-Agent", USER_AGENT)
        request.add_header("Accept", "application/vnd.github+json")
        if data is not None:
            request.add_header("Content-Type", "application/json")
        try:
            with self._opener(request, timeout=self._timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            raise StoreError(f"Gist API error {e.code} on {method}") from e
        except (OSError, http.client.HTTPException) as e:
            raise StoreError(f"Gist API unreachable: {e!r}") from e
        try:
            return json.loads(raw.decode("utf-8")) if raw else {}
        except ValueError as e:
            raise StoreError("Gist API returned invalid JSON") from e

    def get(self, key: str) -> Optional[dict[str, Any]]:
        """Return the parsed JSON content of ``key`` or None if the file is absent."""

        gist = self._request("GET")
        files = gist.get("files") or {}
        entry = files.get(key)
        if not entry:
            return None
        # Large files are truncated in the gist payload; raw_url has the full body.
        if entry.get("truncated") and entry.get("raw_url"):
            content = self._fetch_raw(entry["raw_url"])
        else:
            content = entry.get("content") or ""
        try:
            return json.loads(content)
        except ValueError as e:
            raise StoreError(f"Gist file {key} is not valid JSON") from e

    def _fetch_raw(self, url: str) -> str:
        request = urllib.request.Request(url, method="GET")
        request.add_header("User-Agent", USER_AGENT)
        try:
            with self._opener(request, timeout=self._timeout) as response:
                return response.read().decode("utf-8")
        except (OSError, http.client.HTTPException) as e:
            raise StoreError(f"Gist raw fetch failed: {e!r}") from e

    def put(self, key: str, document: dict[str, Any]) -> None:
        """Overwrite ``key`` with ``document`` serialized as indented JSON."""

        payload = {"files": {key: {"content": json.dumps(document, indent=2, ensure_ascii=False)}}}
        self._request("PATCH", payload)
        LOGGER.info("Saved %s to gist %s", key, self._gist_id)
