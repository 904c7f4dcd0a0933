"""Deduplication helpers (core domain)."""

from __future__ import annotations

import hashlib
import re
from typing import Iterable, List

from core.models import CandidateItem


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def normalize_for_fingerprint(text: str) -> str:
    """Normalize text for deterministic fingerprinting."""

    return _collapse_whitespace(text).lower()


def compute_identifier(title: str, link: str) -> str:
    """Return the long-term dedupe key for an item.

    MD5 over the raw title followed by the link. Stored documents already
    hold keys built this way, so the function must not change.
    """

    payload = f"{title}{link or ''}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def compute_title_fingerprint(title: str) -> str:
    """Return the in-batch dedupe key for a title."""

    normalized = normalize_for_fingerprint(title)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def filter_unseen(items: Iterable[CandidateItem], seen_identifiers: Iterable[str]) -> List[CandidateItem]:
    """Drop items whose identifier is already recorded as seen."""

    seen = set(seen_identifiers)
    return [item for item in items if item.identifier not in seen]


def dedupe_by_title(items: Iterable[CandidateItem]) -> List[CandidateItem]:
    """Drop later items whose normalized title already appeared in the batch.

    Order is stable and the first occurrence wins, so the result follows
    source declaration order and then per-source entry order.
    """

    fingerprints: set[str] = set()
    unique: List[CandidateItem] = []
    for item in items:
        fingerprint = compute_title_fingerprint(item.title)
        if fingerprint in fingerprints:
            continue
        fingerprints.add(fingerprint)
        unique.append(item)
    return unique
