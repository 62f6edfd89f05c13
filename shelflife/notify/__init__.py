"""Notifier base class and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import ShelflifeConfig


class Notifier(ABC):
    """Abstract transport that shows alerts to the user."""

    def request_permission(self) -> bool:
        """Ask the host for permission to show alerts."""
        return self.permission_granted()

    @abstractmethod
    def permission_granted(self) -> bool:
        ...

    @abstractmethod
    def deliver(
        self, title: str, body: str, tag: str, metadata: dict[str, Any]
    ) -> None:
        """Show one alert.

        ``tag`` identifies the logical alert, so a transport may collapse
        repeated deliveries of the same tag.

        Raises:
            NotificationDeliveryError: If the alert could not be shown.
        """
        ...


def create_notifier(config: ShelflifeConfig) -> Notifier:
    """Create a notifier based on configuration."""
    backend_name = config.notifications.backend

    match backend_name:
        case "log":
            from .console import LogNotifier

            return LogNotifier()
        case "console":
            from .console import ConsoleNotifier

            return ConsoleNotifier()
        case "desktop":
            from .desktop import DesktopNotifier

            return DesktopNotifier()
        case _:
            raise ValueError(
                f"Unknown notification backend: {backend_name!r} "
                f"(choose log / console / desktop)"
            )
