"""Notifiers that write alerts to the log or to stdout."""

from __future__ import annotations

import logging
import sys
from typing import Any

from . import Notifier

logger = logging.getLogger(__name__)


class LogNotifier(Notifier):
    """Records alerts in the application log."""

    def permission_granted(self) -> bool:
        return True

    def deliver(
        self, title: str, body: str, tag: str, metadata: dict[str, Any]
    ) -> None:
        logger.info("[%s] %s: %s", tag, title, body)


class ConsoleNotifier(Notifier):
    """Prints alerts to a text stream, skipping tags already shown."""

    def __init__(self, stream=None) -> None:
        self._stream = stream or sys.stdout
        self._shown: set[str] = set()

    def permission_granted(self) -> bool:
        return True

    def deliver(
        self, title: str, body: str, tag: str, metadata: dict[str, Any]
    ) -> None:
        if tag in self._shown:
            logger.debug("Skipping already shown alert %s", tag)
            return
        print(f"{title}\n  {body}", file=self._stream)
        self._stream.flush()
        self._shown.add(tag)
