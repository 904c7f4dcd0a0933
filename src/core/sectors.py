"""Sector detection (core domain).

Sectors are checked in declaration order and the first one with a keyword
contained in the text wins. There is no scoring.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from core.models import Sector


def build_sectors(sectors_config: Iterable[dict]) -> List[Sector]:
    """Build Sector descriptors from config entries, preserving order."""

    sectors: List[Sector] = []
    for entry in sectors_config:
        if not entry.get("enabled", True):
            continue
        sectors.append(
            Sector(
                id=entry["id"],
                name=entry["name"],
                latitude=float(entry["latitude"]),
                longitude=float(entry["longitude"]),
                keywords=tuple(k.lower() for k in entry.get("keywords", [])),
            )
        )
    return sectors


def detect_sector(text: str, sectors: Iterable[Sector]) -> Optional[Sector]:
    """Return the first sector whose keywords appear in ``text``."""

    lowered = (text or "").lower()
    for sector in sectors:
        if any(keyword in lowered for keyword in sector.keywords):
            return sector
    return None
