"""Read path for the persisted event history."""

from __future__ import annotations

from typing import Any

from core.state import StateStore


def read_history(state_store: StateStore) -> list[dict[str, Any]]:
    """Return the stored events verbatim, newest first.

    StateStore.load already substitutes an empty state on any failure.
    """

    return state_store.load().events
