"""
User-facing notices for vcsflow.

Every notice is mirrored into `logging` at a matching severity and handed
to the registered sinks (the console host renders them; the desktop sink
uses notify-send, which works with mako, dunst, GNOME and KDE daemons).
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Level(Enum):
    """Severity of a notice, in the order a status bar would show them."""
    RUNNING = "running"
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Level.RUNNING: logging.INFO,
    Level.SUCCESS: logging.INFO,
    Level.INFO: logging.INFO,
    Level.WARNING: logging.WARNING,
    Level.ERROR: logging.ERROR,
}


@dataclass
class Notice:
    message: str
    level: Level
    details: str = ""
    error: Optional[BaseException] = None


class Notifier:
    """Fan-out for notices. Keeps the most recent one for status displays."""

    def __init__(self):
        self._sinks: list[Callable[[Notice], None]] = []
        self.last: Optional[Notice] = None

    def add_sink(self, sink: Callable[[Notice], None]) -> None:
        self._sinks.append(sink)

    def log(self, message: str, level: Level = Level.INFO, details: str = "",
            error: Optional[BaseException] = None) -> Notice:
        notice = Notice(message=message, level=level, details=details, error=error)
        text = message
        if details:
            text += f" ({details})"
        if error is not None:
            text += f": {error}"
        logger.log(_LOG_LEVELS[level], text)

        self.last = notice
        for sink in self._sinks:
            sink(notice)
        return notice


VALID_URGENCIES = ("low", "normal", "critical")

_URGENCY_FOR = {
    Level.ERROR: "critical",
    Level.WARNING: "normal",
}

MAX_NOTIFICATION_LENGTH = 200


def notify(title: str, message: str, urgency: str = "normal"):
    """
    Send desktop notification.

    Args:
        title: Notification title
        message: Notification body
        urgency: One of "low", "normal", "critical"
    """
    if urgency not in VALID_URGENCIES:
        logger.warning(f"Invalid urgency '{urgency}', using 'normal'")
        urgency = "normal"

    if not shutil.which("notify-send"):
        logger.debug("notify-send not found, skipping notification")
        return

    try:
        result = subprocess.run([
            "notify-send",
            "--urgency", urgency,
            "--app-name", "vcsflow",
            title,
            message
        ], capture_output=True, text=True, timeout=5)

        if result.returncode != 0:
            logger.warning(f"notify-send failed (exit {result.returncode}): {result.stderr}")
    except subprocess.TimeoutExpired:
        logger.warning("notify-send timed out")
    except OSError as e:
        logger.warning(f"Failed to run notify-send: {e}")


def desktop_sink(notice: Notice) -> None:
    """Forward warnings and errors to the desktop."""
    urgency = _URGENCY_FOR.get(notice.level)
    if urgency is None:
        return
    body = str(notice.error) if notice.error is not None else notice.details
    # Truncate long bodies to keep notifications readable
    if len(body) > MAX_NOTIFICATION_LENGTH:
        body = body[:MAX_NOTIFICATION_LENGTH] + "..."
    notify(f"vcsflow: {notice.message}", body, urgency)
