"""User-facing notifications (toasts) raised by the stores."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"  # "default" | "destructive"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


class Notifier(ABC):
    """Abstract sink for notifications shown to the user."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        ...

    def success(self, title: str, description: str) -> None:
        self.notify(Notification(title, description))

    def error(self, description: str, title: str = "Error") -> None:
        self.notify(Notification(title, description, variant="destructive"))


class LogNotifier(Notifier):
    """Writes notifications to the log."""

    def notify(self, notification: Notification) -> None:
        if notification.is_error:
            logger.error("%s: %s", notification.title, notification.description)
        else:
            logger.info("%s: %s", notification.title, notification.description)


class CollectingNotifier(Notifier):
    """Keeps every notification in memory, newest last."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def errors(self) -> list[Notification]:
        return [n for n in self.notifications if n.is_error]

    def clear(self) -> None:
        self.notifications.clear()
