"""Core alert pipeline.

This module is integration-agnostic. It only relies on ports for feeds,
storage and notifications, enabling other frontends or adapters without
changes here.

The run enforces a strict order:
1) Load state
2) Collect keyword-relevant candidates from every source
3) Drop identifiers already seen, then in-batch title duplicates
4) Cap the batch
5) Per item: detect sector, notify, record as seen, prepend history event
6) Save state once
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence

from core.collector import FeedCollector
from core.config import PipelineConfig
from core.dedup import dedupe_by_title, filter_unseen
from core.models import (
    CandidateItem,
    HistoricalEvent,
    PersistedState,
    RunResult,
    Sector,
    SendResult,
    Source,
)
from core.ports import Notifier
from core.sectors import detect_sector
from core.state import StateStore

LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_iso(value: datetime) -> str:
    """Render a timestamp as UTC ISO-8601 with millisecond precision and Z."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AlertProcessor:
    """Orchestrates collection, dedup, notifications and persistence."""

    def __init__(
        self,
        sources: Iterable[Source],
        collector: FeedCollector,
        state_store: StateStore,
        notifier: Notifier,
        sectors: Iterable[Sector],
        config: PipelineConfig,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._sources = list(sources)
        self._collector = collector
        self._state_store = state_store
        self._notifier = notifier
        self._sectors = list(sectors)
        self._config = config
        self._clock = clock

    def select(self, candidates: Sequence[CandidateItem], state: PersistedState) -> List[CandidateItem]:
        """Return the items to surface this run, already capped."""

        unseen = filter_unseen(candidates, state.seen_identifiers)
        unique = dedupe_by_title(unseen)
        if len(unique) > self._config.cap:
            LOGGER.info("Capping %s new items to %s", len(unique), self._config.cap)
        return unique[: self._config.cap]

    def record(self, state: PersistedState, item: CandidateItem, sector: Optional[Sector]) -> None:
        """Mark ``item`` as seen and prepend its history event."""

        state.seen_identifiers.append(item.identifier)
        event = HistoricalEvent(
            identifier=item.identifier,
            title=item.title,
            link=item.link,
            published_at=format_iso(item.published_at),
            source_name=item.source_name,
            sector=sector,
            fetched_at=format_iso(self._clock()),
        )
        state.events.insert(0, event.to_dict())

    async def run(self) -> RunResult:
        """Run one pass of the pipeline and report how many items were surfaced."""

        state = self._state_store.load()
        candidates = await self._collector.collect(self._sources)
        to_send = self.select(candidates, state)

        delivered = 0
        for item in to_send:
            sector = detect_sector(f"{item.title} {item.snippet}", self._sectors)
            try:
                result = await self._notifier.send(item, sector)
            except Exception as e:
                result = SendResult(delivered=False, error=str(e) or e.__class__.__name__)
            if result.delivered:
                delivered += 1
            elif result.error:
                LOGGER.warning("Send failed for %s: %s", item.identifier, result.error)
            # Recorded even when delivery failed.
            self.record(state, item, sector)

        saved = self._state_store.save(state)
        if saved.error:
            LOGGER.warning("State save failed: %s", saved.error)

        LOGGER.info(
            "Run complete: candidates=%s, surfaced=%s, delivered=%s",
            len(candidates),
            len(to_send),
            delivered,
        )
        return RunResult(
            sent=len(to_send),
            candidates=len(candidates),
            delivered=delivered,
            saved=saved.saved,
        )
