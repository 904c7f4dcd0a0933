"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types. Field names in the persisted
document use camelCase so documents written by earlier deployments stay
readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Source:
    """A news feed polled on every run."""

    name: str
    feed_location: str


@dataclass(frozen=True)
class Sector:
    """A named geographic zone with map coordinates and trigger keywords."""

    id: str
    name: str
    latitude: float
    longitude: float
    keywords: Tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "keywords": list(self.keywords),
        }


@dataclass(frozen=True)
class FeedEntry:
    """One parsed feed entry as returned by a FeedReader adapter."""

    title: str
    link: str
    published_at: Optional[datetime]
    snippet: str


@dataclass(frozen=True)
class CandidateItem:
    """A keyword-relevant entry that has not been deduplicated yet."""

    identifier: str
    source_name: str
    title: str
    link: str
    published_at: datetime
    snippet: str


@dataclass(frozen=True)
class HistoricalEvent:
    """Persisted representation of a single surfaced item."""

    identifier: str
    title: str
    link: str
    published_at: str
    source_name: str
    sector: Optional[Sector]
    fetched_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "title": self.title,
            "link": self.link,
            "publishedAt": self.published_at,
            "sourceName": self.source_name,
            "sector": self.sector.to_dict() if self.sector else None,
            "fetchedAt": self.fetched_at,
        }


@dataclass
class PersistedState:
    """The single durable document: dedupe history plus event history.

    Events are kept as plain dicts exactly as loaded so the history endpoint
    can return them verbatim, including entries written by older versions.
    """

    seen_identifiers: list[str] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        return {
            "seenIdentifiers": list(self.seen_identifiers),
            "events": list(self.events),
        }


@dataclass(frozen=True)
class SendResult:
    """Outcome of one notification dispatch."""

    delivered: bool
    skipped: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class StoreResult:
    """Outcome of one state save."""

    saved: bool
    skipped: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class RunResult:
    """Summary of one pipeline invocation."""

    sent: int
    candidates: int
    delivered: int
    saved: bool

    def to_response(self) -> dict[str, Any]:
        return {"ok": True, "sent": self.sent}
