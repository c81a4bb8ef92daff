"""Desktop notification sink (notify-send on Linux, osascript on macOS)."""

import shutil
import subprocess
import sys

import structlog

from logwatcher.errors import NotificationDispatchError

log = structlog.get_logger()

APP_NAME = "logwatcher"
EXPIRE_MS = 5000


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopSink:
    """Shows alerts through the platform's notification daemon."""

    name = "desktop"

    def __init__(self, platform: str | None = None, timeout: float = 5.0):
        self.platform = platform or sys.platform
        self.timeout = timeout

    def command(self, title: str, body: str) -> list[str]:
        """Build the command line that displays one notification.

        Raises:
            NotificationDispatchError: no notification tool for this platform
        """
        if self.platform == "darwin":
            script = f"display notification {_applescript_quote(body)} with title {_applescript_quote(title)}"
            return ["osascript", "-e", script]

        if self.platform.startswith("linux") or "bsd" in self.platform:
            return [
                "notify-send",
                f"--app-name={APP_NAME}",
                f"--expire-time={EXPIRE_MS}",
                title,
                body,
            ]

        raise NotificationDispatchError(f"Desktop notifications unsupported on {self.platform}")

    def send(self, title: str, body: str) -> None:
        """Display a notification.

        Raises:
            NotificationDispatchError: the notification tool is missing or failed
        """
        cmd = self.command(title, body)
        if shutil.which(cmd[0]) is None:
            raise NotificationDispatchError(f"Failed to send notification: {cmd[0]} not found")

        try:
            subprocess.run(cmd, check=True, capture_output=True, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else ""
            raise NotificationDispatchError(
                f"Failed to send notification: {cmd[0]} exited {e.returncode} {stderr}".rstrip()
            ) from e
        except (subprocess.TimeoutExpired, OSError) as e:
            raise NotificationDispatchError(f"Failed to send notification: {e}") from e

        log.debug("Desktop notification shown", title=title)
