import logging
from typing import Optional

import httpx
from rich.console import Console
from rich.panel import Panel

from circulation.errors import NotificationError
from circulation.services.http_client import build_http_client

logger = logging.getLogger(__name__)


class ConsoleNotificationService:
    """Prints notifications to the terminal. Never fails."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def notify_user(self, user_id: str, message: str) -> None:
        self.console.print(Panel(message, title=f"Notification for {user_id}", border_style="blue"))


class WebhookNotificationService:
    """POSTs ``{"user_id", "message"}`` JSON to a webhook.

    One request per call; the Library owns the retry policy.
    """

    def __init__(self, url: str, timeout: float = 5.0,
                 transport: Optional[httpx.BaseTransport] = None) -> None:
        self.url = url
        self._client = build_http_client(timeout, transport=transport)

    def notify_user(self, user_id: str, message: str) -> None:
        try:
            resp = self._client.post(self.url, json={"user_id": user_id, "message": message})
        except httpx.HTTPError as exc:
            raise NotificationError(f"Webhook unreachable: {exc}") from exc
        if resp.status_code >= 400:
            raise NotificationError(f"Webhook returned HTTP {resp.status_code}")
        logger.debug("Webhook accepted notification for %s", user_id)

    def close(self) -> None:
        self._client.close()
