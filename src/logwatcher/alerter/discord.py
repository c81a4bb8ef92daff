"""Discord webhook sink for sending alerts."""

import httpx
import structlog

from logwatcher.errors import NotificationDispatchError

log = structlog.get_logger()

# Discord embed color
COLOR_ALERT = 0xFF0000  # Red


class DiscordClient:
    """Simple Discord webhook client."""

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.username = "LogWatcher"
        self.timeout = timeout

    def _post(self, payload: dict) -> None:
        try:
            response = httpx.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error("Discord API error", status=e.response.status_code)
            raise NotificationDispatchError(
                f"Discord API error: HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            log.error("Discord request failed", error=str(e))
            raise NotificationDispatchError(f"Discord request failed: {e}") from e

    def send(self, message: str) -> None:
        """Send a plain message to Discord.

        Raises:
            NotificationDispatchError: webhook rejected the message or was unreachable
        """
        self._post({"content": message, "username": self.username})
        log.debug("Discord message sent")

    def send_embed(
        self,
        title: str,
        description: str,
        color: int = COLOR_ALERT,
        fields: list[dict] | None = None,
    ) -> None:
        """Send a rich embed message to Discord.

        Args:
            title: Embed title
            description: Embed description
            color: Embed color (decimal, e.g., 0xFF0000 for red)
            fields: Optional list of {"name": "...", "value": "...", "inline": bool}

        Raises:
            NotificationDispatchError: webhook rejected the message or was unreachable
        """
        embed: dict = {
            "title": title,
            "description": description,
            "color": color,
        }
        if fields:
            embed["fields"] = fields

        self._post({"username": self.username, "embeds": [embed]})
        log.debug("Discord embed sent", title=title)


class DiscordSink:
    """Notification sink that posts each alert as a Discord embed."""

    name = "discord"

    def __init__(self, client: DiscordClient):
        self.client = client

    def send(self, title: str, body: str) -> None:
        self.client.send_embed(title=title, description=f"```{body}```")
