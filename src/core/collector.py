"""Feed collection and keyword filtering.

Each source is handled independently: a network or parse failure is logged
and the source is skipped without affecting the others.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Sequence

from core.dedup import compute_identifier
from core.models import CandidateItem, FeedEntry, Source
from core.ports import FeedReader
from core.relevance import is_relevant

LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FeedCollector:
    """Turns configured sources into keyword-relevant candidate items."""

    def __init__(
        self,
        reader: FeedReader,
        keywords: Iterable[str],
        items_per_source: int = 10,
        concurrent: bool = False,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._reader = reader
        self._keywords = tuple(keywords)
        self._items_per_source = items_per_source
        self._concurrent = concurrent
        self._clock = clock

    def _to_candidates(self, source: Source, entries: Sequence[FeedEntry]) -> List[CandidateItem]:
        candidates: List[CandidateItem] = []
        # Readers may return more than asked for; only the newest entries count.
        for entry in list(entries)[: self._items_per_source]:
            title = entry.title or ""
            snippet = entry.snippet or ""
            if not is_relevant(title, snippet, self._keywords):
                continue
            candidates.append(
                CandidateItem(
                    identifier=compute_identifier(title, entry.link),
                    source_name=source.name,
                    title=title,
                    link=entry.link or "",
                    published_at=entry.published_at or self._clock(),
                    snippet=snippet,
                )
            )
        return candidates

    def collect_source(self, source: Source) -> List[CandidateItem]:
        """Fetch one source; failures yield an empty list."""

        try:
            entries = self._reader.fetch(source, self._items_per_source)
        except Exception as e:
            LOGGER.warning("Feed error for %s: %s", source.name, e)
            return []
        candidates = self._to_candidates(source, entries)
        LOGGER.info("%s: %s of %s entries matched keywords", source.name, len(candidates), len(entries))
        return candidates

    async def collect(self, sources: Sequence[Source]) -> List[CandidateItem]:
        """Collect candidates from every source in declaration order."""

        if self._concurrent:
            # gather keeps argument order, so merged results stay deterministic.
            per_source = await asyncio.gather(
                *(asyncio.to_thread(self.collect_source, source) for source in sources)
            )
        else:
            per_source = [self.collect_source(source) for source in sources]

        items: List[CandidateItem] = []
        for candidates in per_source:
            items.extend(candidates)
        return items
