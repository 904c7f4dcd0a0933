from __future__ import annotations

import asyncio
import http.client
from datetime import datetime, timedelta, timezone
from typing import Optional

from adapters.gist_store import GistKeyValueStore
from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.collector import FeedCollector
from core.config import NotificationConfig, PipelineConfig, StateConfig
from core.dedup import compute_identifier
from core.models import Source
from core.ports import Notifier
from core.processor import AlertProcessor, format_iso
from core.relevance import build_keywords
from core.sectors import build_sectors
from core.state import StateStore

from fakes import FakeKeyValueStore, FakeNotifier, FakeReader, entry, fixed_clock, store_error

SOURCES = [Source("Reuters", "r"), Source("BBC", "b")]
KEYWORDS = build_keywords(["border", "clash", "airstrike", "shelling"])
SECTORS = build_sectors(
    [
        {"id": "surin", "name": "Surin / Sisaket", "latitude": 14.8, "longitude": 103.5, "keywords": ["surin"]},
    ]
)
STATE_CONFIG = StateConfig(key="state.json", history_limit=200)


def _processor(
    reader: FakeReader,
    backend: Optional[FakeKeyValueStore],
    notifier: Notifier,
    cap: int = 3,
) -> AlertProcessor:
    return AlertProcessor(
        sources=SOURCES,
        collector=FeedCollector(reader, KEYWORDS, clock=fixed_clock),
        state_store=StateStore(backend, STATE_CONFIG),
        notifier=notifier,
        sectors=SECTORS,
        config=PipelineConfig(cap=cap),
        clock=fixed_clock,
    )


def test_surfaces_at_most_cap_items_and_saves_once() -> None:
    reader = FakeReader({"Reuters": [entry(f"Border clash {i}", f"L{i}") for i in range(5)]})
    backend = FakeKeyValueStore({"seenIdentifiers": ["old"], "events": [{"identifier": "old"}]})
    notifier = FakeNotifier()

    result = asyncio.run(_processor(reader, backend, notifier).run())

    assert result.sent == 3
    assert result.candidates == 5
    assert result.to_response() == {"ok": True, "sent": 3}
    assert len(notifier.sent) == 3
    assert len(backend.puts) == 1
    document = backend.puts[0][1]
    assert document["seenIdentifiers"] == [
        "old",
        compute_identifier("Border clash 0", "L0"),
        compute_identifier("Border clash 1", "L1"),
        compute_identifier("Border clash 2", "L2"),
    ]
    # Newest first: the last surfaced item sits at the front.
    assert [event.get("title") for event in document["events"]] == [
        "Border clash 2",
        "Border clash 1",
        "Border clash 0",
        None,
    ]
    assert document["events"][-1] == {"identifier": "old"}


def test_event_shape_and_sector_annotation() -> None:
    reader = FakeReader({"Reuters": [entry("Border clash near Surin province", "L1", snippet="Shots fired")]})
    backend = FakeKeyValueStore()
    notifier = FakeNotifier()

    asyncio.run(_processor(reader, backend, notifier).run())

    item, sector = notifier.sent[0]
    assert sector is not None and sector.id == "surin"
    event = backend.puts[0][1]["events"][0]
    assert event == {
        "identifier": compute_identifier("Border clash near Surin province", "L1"),
        "title": "Border clash near Surin province",
        "link": "L1",
        "publishedAt": "2024-01-01T12:00:00.000Z",
        "sourceName": "Reuters",
        "sector": {
            "id": "surin",
            "name": "Surin / Sisaket",
            "latitude": 14.8,
            "longitude": 103.5,
            "keywords": ["surin"],
        },
        "fetchedAt": "2024-01-02T03:04:05.000Z",
    }


def test_identical_titles_across_sources_surface_once() -> None:
    reader = FakeReader(
        {
            "Reuters": [entry("Airstrike hits depot", "L1")],
            "BBC": [entry("Airstrike hits depot", "L2")],
        }
    )
    notifier = FakeNotifier()
    result = asyncio.run(_processor(reader, FakeKeyValueStore(), notifier).run())
    assert result.sent == 1
    assert notifier.sent[0][0].source_name == "Reuters"
    assert notifier.sent[0][0].link == "L1"


def test_seen_items_are_not_resurfaced_on_next_run() -> None:
    reader = FakeReader({"Reuters": [entry("Shelling overnight", "L1")]})
    backend = FakeKeyValueStore()
    notifier = FakeNotifier()
    processor = _processor(reader, backend, notifier)

    first = asyncio.run(processor.run())
    second = asyncio.run(processor.run())

    assert first.sent == 1
    assert second.sent == 0
    assert len(notifier.sent) == 1
    assert backend.documents["state.json"]["seenIdentifiers"] == [compute_identifier("Shelling overnight", "L1")]


def test_send_failure_still_records_item_as_seen() -> None:
    reader = FakeReader({"Reuters": [entry("Border clash", "L1"), entry("Airstrike", "L2")]})
    backend = FakeKeyValueStore()
    notifier = FakeNotifier(fail=True)

    result = asyncio.run(_processor(reader, backend, notifier).run())

    assert result.sent == 2
    assert result.delivered == 0
    assert len(backend.documents["state.json"]["seenIdentifiers"]) == 2


def test_raising_notifier_does_not_abort_the_run() -> None:
    reader = FakeReader({"Reuters": [entry("Border clash", "L1")]})
    backend = FakeKeyValueStore()
    result = asyncio.run(_processor(reader, backend, FakeNotifier(raise_error=True)).run())
    assert result.sent == 1
    assert backend.documents["state.json"]["seenIdentifiers"]


def test_unexpected_notifier_exception_is_recorded_and_saved() -> None:
    reader = FakeReader({"Reuters": [entry("Border clash", "L1"), entry("Airstrike", "L2")]})
    backend = FakeKeyValueStore()
    notifier = FakeNotifier(error=RuntimeError("event loop hiccup"))

    result = asyncio.run(_processor(reader, backend, notifier).run())

    assert result.to_response() == {"ok": True, "sent": 2}
    assert result.delivered == 0
    assert len(notifier.sent) == 2
    assert len(backend.puts) == 1
    assert backend.documents["state.json"]["seenIdentifiers"] == [
        compute_identifier("Border clash", "L1"),
        compute_identifier("Airstrike", "L2"),
    ]


def test_real_notifier_protocol_error_does_not_abort_the_run() -> None:
    def opener(request, timeout=None):
        raise http.client.BadStatusLine("garbage")

    notifier = TelegramBotNotifier("TOKEN", "-100", NotificationConfig(), opener=opener)
    reader = FakeReader({"Reuters": [entry("Border clash", "L1")]})
    backend = FakeKeyValueStore()

    result = asyncio.run(_processor(reader, backend, notifier).run())

    assert result.to_response() == {"ok": True, "sent": 1}
    assert result.saved
    assert len(backend.puts) == 1


def test_unexpected_save_exception_is_reported_not_raised() -> None:
    for error in (RuntimeError("disk full"), http.client.BadStatusLine("garbage")):
        reader = FakeReader({"Reuters": [entry("Border clash", "L1")]})
        backend = FakeKeyValueStore()
        backend.put_error = error

        result = asyncio.run(_processor(reader, backend, FakeNotifier()).run())

        assert result.to_response() == {"ok": True, "sent": 1}
        assert result.saved is False
        assert len(backend.puts) == 1


def test_gist_protocol_error_does_not_abort_the_run() -> None:
    def opener(request, timeout=None):
        raise http.client.BadStatusLine("garbage")

    reader = FakeReader({"Reuters": [entry("Border clash", "L1"), entry("Airstrike", "L2")]})
    processor = AlertProcessor(
        sources=SOURCES,
        collector=FeedCollector(reader, KEYWORDS, clock=fixed_clock),
        state_store=StateStore(GistKeyValueStore("GH", "gist123", opener=opener), STATE_CONFIG),
        notifier=FakeNotifier(),
        sectors=SECTORS,
        config=PipelineConfig(cap=3),
        clock=fixed_clock,
    )

    result = asyncio.run(processor.run())

    assert result.to_response() == {"ok": True, "sent": 2}
    assert result.saved is False


def test_load_failure_proceeds_with_empty_state_and_still_saves() -> None:
    reader = FakeReader({"Reuters": [entry("Border clash", "L1")]})
    backend = FakeKeyValueStore({"seenIdentifiers": [compute_identifier("Border clash", "L1")], "events": []})
    backend.get_error = store_error()
    backend.put_error = store_error("still down")
    notifier = FakeNotifier()

    result = asyncio.run(_processor(reader, backend, notifier).run())

    # The known item is re-notified because state could not be read.
    assert result.sent == 1
    assert result.saved is False
    assert len(backend.puts) == 1


def test_events_stay_capped_newest_first() -> None:
    existing = [{"identifier": f"old{i}"} for i in range(200)]
    reader = FakeReader({"Reuters": [entry("Border clash", "L1")]})
    backend = FakeKeyValueStore({"seenIdentifiers": [], "events": existing})

    asyncio.run(_processor(reader, backend, FakeNotifier()).run())

    events = backend.documents["state.json"]["events"]
    assert len(events) == 200
    assert events[0]["title"] == "Border clash"
    assert events[-1] == {"identifier": "old198"}


def test_no_candidates_still_saves_state() -> None:
    backend = FakeKeyValueStore()
    result = asyncio.run(_processor(FakeReader({}), backend, FakeNotifier()).run())
    assert result.sent == 0
    assert len(backend.puts) == 1


def test_format_iso_handles_naive_and_aware() -> None:
    assert format_iso(datetime(2024, 1, 1)) == "2024-01-01T00:00:00.000Z"
    plus7 = timezone(timedelta(hours=7))
    assert format_iso(datetime(2024, 1, 1, 7, tzinfo=plus7)) == "2024-01-01T00:00:00.000Z"
