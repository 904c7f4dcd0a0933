"""feedparser-backed FeedReader adapter.

This keeps feedparser-specific details out of the core pipeline.
"""

from __future__ import annotations

import calendar
import html
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

import feedparser

from core.errors import FeedError
from core.models import FeedEntry, Source

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Borderadar"

_TAG_RE = re.compile(r"<[^>]+>")


def _plain_text(value: str) -> str:
    text = html.unescape(_TAG_RE.sub(" ", value or ""))
    return re.sub(r"\s+", " ", text).strip()


def _published_at(entry: Any) -> Optional[datetime]:
    for attr in ("published_parsed", "updated_parsed"):
        parsed = entry.get(attr)
        if parsed:
            try:
                return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
            except (OverflowError, ValueError):
                continue
    return None


def _snippet(entry: Any) -> str:
    summary = entry.get("summary")
    if summary:
        return _plain_text(summary)
    for content in entry.get("content") or []:
        value = content.get("value")
        if value:
            return _plain_text(value)
    return ""


class FeedparserReader:
    """Fetches and parses RSS/Atom feeds with feedparser."""

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._user_agent = user_agent

    def fetch(self, source: Source, limit: int) -> list[FeedEntry]:
        """Return up to ``limit`` entries in feed order (newest first for news feeds)."""

        feed = feedparser.parse(source.feed_location, agent=self._user_agent)

        status = feed.get("status")
        if status is not None and status >= 400:
            raise FeedError(f"HTTP {status} from {source.feed_location}")
        if feed.get("bozo") and not feed.entries:
            raise FeedError(f"Unparseable feed: {feed.get('bozo_exception')}")

        entries: list[FeedEntry] = []
        for entry in feed.entries[:limit]:
            entries.append(
                FeedEntry(
                    title=entry.get("title") or "",
                    link=entry.get("link") or "",
                    published_at=_published_at(entry),
                    snippet=_snippet(entry),
                )
            )
        LOGGER.debug("Fetched %s entries from %s", len(entries), source.name)
        return entries
