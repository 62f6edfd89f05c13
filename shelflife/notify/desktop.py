"""Desktop notifications using notify-send."""

from __future__ import annotations

import shutil
import subprocess
from typing import Any

from ..errors import NotificationDeliveryError
from . import Notifier

_APP_NAME = "shelflife"


class DesktopNotifier(Notifier):
    """Show alerts through the freedesktop ``notify-send`` command.

    Permission is granted when the command is installed.
    """

    def __init__(self, urgency_by_tag_prefix: dict[str, str] | None = None) -> None:
        self._urgency = urgency_by_tag_prefix or {
            "expired": "critical",
            "expiry": "normal",
            "digest": "normal",
        }

    def permission_granted(self) -> bool:
        return shutil.which("notify-send") is not None

    def _urgency_for(self, tag: str) -> str:
        prefix = tag.split("-", 1)[0]
        return self._urgency.get(prefix, "normal")

    def deliver(
        self, title: str, body: str, tag: str, metadata: dict[str, Any]
    ) -> None:
        if shutil.which("notify-send") is None:
            raise NotificationDeliveryError(
                "notify-send command not found. Install libnotify:\n"
                "  Ubuntu/Debian: sudo apt install libnotify-bin\n"
                "  Fedora/RHEL:   sudo dnf install libnotify"
            )

        cmd = [
            "notify-send",
            "--app-name", _APP_NAME,
            "--urgency", self._urgency_for(tag),
            # Same tag replaces the previous bubble instead of stacking
            "--hint", f"string:x-canonical-private-synchronous:{tag}",
            title,
            body,
        ]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=10,
            )
        except subprocess.TimeoutExpired:
            raise NotificationDeliveryError("notify-send timed out.")
        except OSError as e:
            raise NotificationDeliveryError(f"notify-send failed: {e}") from e

        if result.returncode != 0:
            raise NotificationDeliveryError(
                f"notify-send failed: {result.stderr.strip()}"
            )
