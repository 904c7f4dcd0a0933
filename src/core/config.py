"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PipelineConfig:
    """Limits applied by the alert pipeline on every run."""

    cap: int = 3
    items_per_source: int = 10
    concurrent_fetch: bool = False


@dataclass(frozen=True)
class StateConfig:
    """Persistence settings for the single state document."""

    key: str = "borderadar_state.json"
    history_limit: int = 200
    # 0 keeps every identifier ever seen.
    seen_limit: int = 0


@dataclass(frozen=True)
class NotificationConfig:
    """Notification formatting settings consumed by notifier adapters."""

    header: str = "Borderadar | Verified Update"
    parse_mode: str = "html"
    snippet_chars: int = 400
