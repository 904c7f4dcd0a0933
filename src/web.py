"""HTTP surface for borderadar.

Two endpoints: a trigger that runs one pipeline pass (called by a scheduler)
and a read-only view of the persisted history. All wiring is injected so the
app can be built with fakes in tests.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from flask import Flask, jsonify

from core.models import RunResult

LOGGER = logging.getLogger(__name__)


def create_app(
    run_pipeline: Callable[[], RunResult],
    read_history: Callable[[], list[dict[str, Any]]],
) -> Flask:
    """Build the Flask app around a pipeline runner and a history reader."""

    app = Flask(__name__)

    @app.route("/api/fetchNews", methods=["GET", "POST"])
    def fetch_news():
        try:
            result = run_pipeline()
        except Exception as e:
            LOGGER.exception("Pipeline run failed")
            return jsonify({"ok": False, "error": str(e) or e.__class__.__name__}), 500
        return jsonify(result.to_response())

    @app.route("/api/latest", methods=["GET"])
    def latest():
        try:
            events = read_history()
        except Exception:
            LOGGER.exception("History read failed")
            events = []
        return jsonify({"events": events})

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    return app
