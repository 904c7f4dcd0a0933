"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional

from core.config import NotificationConfig
from core.models import CandidateItem, Sector

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={lat},{lon}"


def format_timestamp(value: datetime) -> str:
    """Render a publish time as an RFC 1123 GMT string."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def build_map_link(sector: Sector) -> str:
    """Return a map query URL centred on the sector."""

    return MAPS_SEARCH_URL.format(lat=sector.latitude, lon=sector.longitude)


def clip_snippet(snippet: str, limit: int) -> str:
    """Clip a snippet to ``limit`` characters, marking the cut with an ellipsis."""

    snippet = (snippet or "").strip()
    if limit <= 0 or len(snippet) <= limit:
        return snippet
    return snippet[:limit].rstrip() + "…"


def _format_html(item: CandidateItem, sector: Optional[Sector], config: NotificationConfig) -> str:
    """Create the HTML notification body used by the Bot API adapter."""

    snippet = clip_snippet(item.snippet, config.snippet_chars)

    parts = [
        f"<b>{html.escape(config.header)}</b>",
        f"<b>Source:</b> {html.escape(item.source_name)}",
        f"<b>Time:</b> {html.escape(format_timestamp(item.published_at))}",
        "",
        f"<b>{html.escape(item.title)}</b>",
    ]
    if snippet:
        parts.append(html.escape(snippet))
    parts.extend(["", f"🔗 {html.escape(item.link)}"])

    if sector:
        parts.append(f"📍 Sector: {html.escape(sector.name)}")
        parts.append(html.escape(build_map_link(sector)))
    return "\n".join(parts)


def _format_markdown(item: CandidateItem, sector: Optional[Sector], config: NotificationConfig) -> str:
    """Create the legacy Markdown notification body."""

    # Bot API legacy Markdown only needs these four characters escaped.
    def escape_md(value: str) -> str:
        for ch in "_*`[":
            value = value.replace(ch, f"\\{ch}")
        return value

    snippet = clip_snippet(item.snippet, config.snippet_chars)

    lines = [
        f"*{escape_md(config.header)}*",
        f"*Source:* {escape_md(item.source_name)}",
        f"*Time:* {escape_md(format_timestamp(item.published_at))}",
        "",
        f"*{escape_md(item.title)}*",
    ]
    if snippet:
        lines.append(escape_md(snippet))
    lines.extend(["", f"🔗 {escape_md(item.link)}"])

    if sector:
        lines.append(f"📍 Sector: {escape_md(sector.name)}")
        lines.append(escape_md(build_map_link(sector)))
    return "\n".join(lines)


def format_notification(
    item: CandidateItem,
    sector: Optional[Sector],
    config: NotificationConfig,
) -> str:
    """Return the notification formatted for the configured parse mode."""

    if config.parse_mode == "markdown":
        return _format_markdown(item, sector, config)
    if config.parse_mode == "html":
        return _format_html(item, sector, config)
    raise ValueError(f"Unsupported notification format: {config.parse_mode}")
