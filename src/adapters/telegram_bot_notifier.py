"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so alerts can be routed to any chat or channel
the bot is a member of.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Callable, Optional

from adapters.notification_formatting import format_notification
from core.config import NotificationConfig
from core.errors import NotifyError
from core.models import CandidateItem, Sector, SendResult

LOGGER = logging.getLogger(__name__)

PARSE_MODES = {"html": "HTML", "markdown": "Markdown"}


class TelegramBotNotifier:
    """Notifier adapter that sends messages via the Telegram Bot API.

    Without a token and chat id every send is a logged no-op.
    """

    def __init__(
        self,
        bot_token: Optional[str],
        chat_id: Optional[str],
        config: NotificationConfig,
        timeout: float = 10,
        opener: Callable = urllib.request.urlopen,
    ) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._config = config
        self._timeout = timeout
        self._opener = opener

    @property
    def configured(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def _post(self, payload: dict) -> None:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with self._opener(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise NotifyError(f"Bot API error {e.code}: {body}") from e
        except http.client.HTTPException as e:
            raise NotifyError(f"Bot API connection error: {e!r}") from e

    async def send(self, item: CandidateItem, sector: Optional[Sector]) -> SendResult:
        """Send the formatted notification via the Bot API."""

        if not self.configured:
            LOGGER.info("Telegram not configured, skipping notification for %s", item.identifier)
            return SendResult(delivered=False, skipped=True)

        message = format_notification(item, sector, self._config)
        payload = {
            "chat_id": self._chat_id,
            "text": message,
            "parse_mode": PARSE_MODES[self._config.parse_mode],
            "disable_web_page_preview": True,
        }
        # Blocking urllib call inside the coroutine.
        try:
            self._post(payload)
        except (NotifyError, OSError) as e:
            return SendResult(delivered=False, error=str(e))
        return SendResult(delivered=True)
