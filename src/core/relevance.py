"""Keyword relevance filtering (core domain)."""

from __future__ import annotations

from typing import Iterable, List, Tuple


def build_keywords(raw_keywords: Iterable[str]) -> Tuple[str, ...]:
    """Normalize configured keywords once so per-entry checks stay minimal."""

    keywords: List[str] = []
    for keyword in raw_keywords:
        cleaned = keyword.strip().lower()
        if cleaned and cleaned not in keywords:
            keywords.append(cleaned)
    return tuple(keywords)


def relevance_text(title: str, snippet: str) -> str:
    """Return the lowercase text that keywords are matched against."""

    return f"{title or ''} {snippet or ''}".lower()


def is_relevant(title: str, snippet: str, keywords: Iterable[str]) -> bool:
    """Return True when the entry contains at least one keyword."""

    text = relevance_text(title, snippet)
    return any(keyword in text for keyword in keywords)
