"""Static configuration for borderadar.

All user-editable settings (sources, keywords, sectors, limits,
notifications, logging) live in a single JSON file for quick edits without
touching Python. Secrets come from the environment (or a .env file).
"""

import json
import os

from dotenv import load_dotenv

from core.models import Source

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# Sources, keywords and sectors are loaded from config.json so users can
# extend the watch list without editing code.
CONFIG_PATH = os.getenv("BORDERADAR_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _normalize_sources(raw_sources: list[dict]) -> list[Source]:
    """Build Source descriptors, keeping declaration order."""

    sources: list[Source] = []
    for entry in raw_sources:
        name = entry.get("name")
        url = entry.get("url")
        if not name or not url:
            continue
        if not entry.get("enabled", True):
            continue
        sources.append(Source(name=name, feed_location=url))
    return sources


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Enabled sources, polled in this order on every run.
SOURCES = _normalize_sources(_CONFIG.get("sources", []))

# Relevance keywords (case-insensitive substring match on title + snippet).
KEYWORDS_CONFIG = _CONFIG.get("keywords", [])

# Sectors are checked in declaration order; the first match wins.
SECTORS_CONFIG = _CONFIG.get("sectors", [])

# Pipeline limits.
# - CAP: notifications per run
# - ITEMS_PER_SOURCE: newest entries inspected per feed
# - CONCURRENT_FETCH: fetch feeds in parallel (merge order is unchanged)
_pipeline = _CONFIG.get("pipeline", {})
CAP = int(_pipeline.get("cap", 3))
ITEMS_PER_SOURCE = int(_pipeline.get("items_per_source", 10))
CONCURRENT_FETCH = bool(_pipeline.get("concurrent_fetch", False))

_feeds = _CONFIG.get("feeds", {})
FEEDS_USER_AGENT = _feeds.get("user_agent", "Borderadar")

# State document settings.
# - STATE_BACKEND: "gist" or "file"
# - HISTORY_LIMIT: events kept in the document
# - SEEN_LIMIT: identifiers kept (0 keeps all)
_state = _CONFIG.get("state", {})
STATE_BACKEND = _state.get("backend", "gist")
STATE_FILENAME = _state.get("filename", "borderadar_state.json")
STATE_FILE_DIR = _state.get("file_dir", os.path.join(PROJECT_ROOT, "data"))
if not os.path.isabs(STATE_FILE_DIR):
    STATE_FILE_DIR = os.path.join(PROJECT_ROOT, STATE_FILE_DIR)
HISTORY_LIMIT = int(_state.get("history_limit", 200))
SEEN_LIMIT = int(_state.get("seen_limit", 0))

# Notification formatting used by the bot notifier.
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_HEADER = _notifications.get("header", "Borderadar | Verified Update")
PARSE_MODE = _notifications.get("parse_mode", "html")
SNIPPET_CHARS = int(_notifications.get("snippet_chars", 400))

# HTTP server defaults for `borderadar serve`.
_server = _CONFIG.get("server", {})
SERVER_HOST = _server.get("host", "127.0.0.1")
SERVER_PORT = int(_server.get("port", 8080))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})

# Credentials. Missing pairs turn the matching feature into a no-op.
TELEGRAM_TOKEN = os.getenv("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID")
GIST_TOKEN = os.getenv("GIST_TOKEN")
GIST_ID = os.getenv("GIST_ID")
