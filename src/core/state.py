"""State store client for the persisted document.

Loading never raises: a missing backend, a transport failure or a malformed
document all yield an empty state. Saving reports failures as a StoreResult
so the caller decides how loud to be.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from core.config import StateConfig
from core.models import PersistedState, StoreResult
from core.ports import KeyValueStore

LOGGER = logging.getLogger(__name__)


def parse_document(document: Any) -> PersistedState:
    """Build a PersistedState from a raw document, tolerating bad shapes."""

    if not isinstance(document, dict):
        return PersistedState()

    # Documents written by the first deployment used "lastIds".
    raw_seen = document.get("seenIdentifiers")
    if raw_seen is None:
        raw_seen = document.get("lastIds")
    seen = [value for value in raw_seen if isinstance(value, str)] if isinstance(raw_seen, list) else []

    raw_events = document.get("events")
    events = [event for event in raw_events if isinstance(event, dict)] if isinstance(raw_events, list) else []

    return PersistedState(seen_identifiers=seen, events=events)


def trim_state(state: PersistedState, config: StateConfig) -> PersistedState:
    """Apply the history cap (and optional seen cap) in place."""

    if len(state.events) > config.history_limit:
        del state.events[config.history_limit :]
    if config.seen_limit > 0 and len(state.seen_identifiers) > config.seen_limit:
        del state.seen_identifiers[: len(state.seen_identifiers) - config.seen_limit]
    return state


class StateStore:
    """Loads and saves the single state document through a KeyValueStore.

    ``store`` is None when persistence credentials are not configured; the
    client then behaves as an empty, write-discarding store.
    """

    def __init__(self, store: Optional[KeyValueStore], config: StateConfig) -> None:
        self._store = store
        self._config = config

    @property
    def configured(self) -> bool:
        return self._store is not None

    def load(self) -> PersistedState:
        """Return the persisted state, or an empty one on any failure."""

        if self._store is None:
            LOGGER.info("State store not configured, starting from empty state")
            return PersistedState()

        try:
            document = self._store.get(self._config.key)
        except Exception as e:
            LOGGER.warning("State load failed, using empty state: %s", e)
            return PersistedState()

        if document is None:
            LOGGER.info("State document %s not found, starting fresh", self._config.key)
            return PersistedState()

        state = parse_document(document)
        LOGGER.info(
            "State loaded: %s seen identifiers, %s events",
            len(state.seen_identifiers),
            len(state.events),
        )
        return state

    def save(self, state: PersistedState) -> StoreResult:
        """Overwrite the remote document with ``state``.

        Transport failures are returned, not raised, and are never retried.
        """

        trim_state(state, self._config)

        if self._store is None:
            return StoreResult(saved=False, skipped=True)

        try:
            self._store.put(self._config.key, state.to_document())
        except Exception as e:
            return StoreResult(saved=False, error=str(e) or e.__class__.__name__)
        return StoreResult(saved=True)
