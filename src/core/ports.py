"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for feed, storage and notification
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from core.models import CandidateItem, FeedEntry, Sector, SendResult, Source


class KeyValueStore(Protocol):
    """Whole-document storage keyed by a single name.

    ``put`` overwrites the stored document; there is no merge and no
    concurrency check, so the last writer wins.
    """

    def get(self, key: str) -> Optional[dict[str, Any]]:
        ...

    def put(self, key: str, document: dict[str, Any]) -> None:
        ...


class FeedReader(Protocol):
    """Feed retrieval and parsing."""

    def fetch(self, source: Source, limit: int) -> list[FeedEntry]:
        ...


class Notifier(Protocol):
    """Formatting and delivery of one surfaced item."""

    async def send(self, item: CandidateItem, sector: Optional[Sector]) -> SendResult:
        ...
