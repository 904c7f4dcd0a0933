from __future__ import annotations

from core.config import StateConfig
from core.history import read_history
from core.state import StateStore

from fakes import FakeKeyValueStore, store_error

CONFIG = StateConfig(key="state.json")


def test_read_history_returns_events_unchanged() -> None:
    events = [{"identifier": "b", "extra": 1}, {"id": "legacy", "pubDate": "x"}]
    backend = FakeKeyValueStore({"seenIdentifiers": ["a", "b"], "events": events})
    assert read_history(StateStore(backend, CONFIG)) == events


def test_read_history_is_empty_when_store_fails_or_is_absent() -> None:
    backend = FakeKeyValueStore({"events": [{"identifier": "a"}]})
    backend.get_error = store_error()
    assert read_history(StateStore(backend, CONFIG)) == []
    assert read_history(StateStore(None, CONFIG)) == []
