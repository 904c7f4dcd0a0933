"""Application entry point for the borderadar alert pipeline."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint

import settings
from adapters.feed_reader import FeedparserReader
from adapters.file_store import JsonFileStore
from adapters.gist_store import GistKeyValueStore
from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.collector import FeedCollector
from core.config import NotificationConfig, PipelineConfig, StateConfig
from core.history import read_history
from core.models import RunResult
from core.ports import KeyValueStore
from core.processor import AlertProcessor
from core.relevance import build_keywords
from core.sectors import build_sectors
from core.state import StateStore
from web import create_app

NAME = "BORDERADAR"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Mask credential values wherever they appear in a rendered record."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _secret_values(redact_cfg: dict) -> list[str]:
    # The bot token shows up in Bot API URLs, the gist token in auth errors.
    if not redact_cfg.get("enabled", True):
        return []
    values = [settings.TELEGRAM_TOKEN, settings.GIST_TOKEN]
    values.extend(os.getenv(name) for name in redact_cfg.get("patterns", []))
    return [value for value in values if value]


def _log_file_path(file_cfg: dict) -> str:
    path = file_cfg.get("path", "logs/borderadar.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return path


def _build_log_handlers(config: dict, formatter: logging.Formatter) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if config.get("console", True):
        # stdout carries the run / history JSON.
        handlers.append(logging.StreamHandler(sys.stderr))

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(
            RotatingFileHandler(
                _log_file_path(file_cfg),
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _RedactingFormatter(
        _secret_values(config.get("redact", {})),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handlers = _build_log_handlers(config, formatter)
    if handlers:
        logging.basicConfig(level=level, handlers=handlers)


def _build_key_value_store() -> Optional[KeyValueStore]:
    # Select the storage adapter from configuration; the core only sees the port.
    if settings.STATE_BACKEND == "file":
        return JsonFileStore(settings.STATE_FILE_DIR)
    if settings.STATE_BACKEND == "gist":
        if not settings.GIST_TOKEN or not settings.GIST_ID:
            return None
        return GistKeyValueStore(settings.GIST_TOKEN, settings.GIST_ID)
    raise RuntimeError("state.backend must be 'gist' or 'file'")


def build_state_store() -> StateStore:
    state_config = StateConfig(
        key=settings.STATE_FILENAME,
        history_limit=settings.HISTORY_LIMIT,
        seen_limit=settings.SEEN_LIMIT,
    )
    return StateStore(_build_key_value_store(), state_config)


def build_processor() -> AlertProcessor:
    """Wire adapters and configuration into an AlertProcessor."""

    pipeline_config = PipelineConfig(
        cap=settings.CAP,
        items_per_source=settings.ITEMS_PER_SOURCE,
        concurrent_fetch=settings.CONCURRENT_FETCH,
    )
    notification_config = NotificationConfig(
        header=settings.NOTIFICATION_HEADER,
        parse_mode=settings.PARSE_MODE,
        snippet_chars=settings.SNIPPET_CHARS,
    )
    collector = FeedCollector(
        reader=FeedparserReader(settings.FEEDS_USER_AGENT),
        keywords=build_keywords(settings.KEYWORDS_CONFIG),
        items_per_source=pipeline_config.items_per_source,
        concurrent=pipeline_config.concurrent_fetch,
    )
    notifier = TelegramBotNotifier(
        bot_token=settings.TELEGRAM_TOKEN,
        chat_id=settings.TELEGRAM_CHAT_ID,
        config=notification_config,
    )
    if not notifier.configured:
        LOGGER.warning("TELEGRAM_TOKEN/TELEGRAM_CHAT_ID missing, notifications disabled")

    return AlertProcessor(
        sources=settings.SOURCES,
        collector=collector,
        state_store=build_state_store(),
        notifier=notifier,
        sectors=build_sectors(settings.SECTORS_CONFIG),
        config=pipeline_config,
    )


def run_once() -> RunResult:
    """Run one pipeline pass with a freshly wired processor."""

    return asyncio.run(build_processor().run())


def _load_history() -> list[dict[str, Any]]:
    return read_history(build_state_store())


def _run() -> int:
    LOGGER.info("Starting run over %s sources", len(settings.SOURCES))
    try:
        result = run_once()
    except Exception as e:
        LOGGER.exception("Run failed")
        print(json.dumps({"ok": False, "error": str(e) or e.__class__.__name__}))
        return 1
    print(json.dumps(result.to_response()))
    return 0


def _serve(host: str, port: int) -> int:
    _print_banner()
    app = create_app(run_once, _load_history)
    LOGGER.info("Serving on %s:%s", host, port)
    app.run(host=host, port=port)
    return 0


def _history(limit: Optional[int]) -> int:
    events = _load_history()
    if limit is not None:
        events = events[:limit]
    print(json.dumps({"events": events}, indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="borderadar")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Run one fetch-filter-notify pass")
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP endpoints")
    serve_parser.add_argument("--host", default=settings.SERVER_HOST)
    serve_parser.add_argument("--port", type=int, default=settings.SERVER_PORT)
    history_parser = subparsers.add_parser("history", help="Print the persisted event history")
    history_parser.add_argument("--limit", type=int, default=None)

    args = parser.parse_args(argv)
    _configure_logging()

    if args.command == "serve":
        return _serve(args.host, args.port)
    if args.command == "history":
        return _history(args.limit)
    return _run()


if __name__ == "__main__":
    sys.exit(main())
