# retail_pos/services/notifications.py
from __future__ import annotations

from typing import List, Protocol

from retail_pos.schemas.checkout import Notification


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class NotificationLog:
    """Collects cashier-facing alerts; the HTTP layer drains them into each response."""

    def __init__(self):
        self._items: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self._items.append(notification)

    def drain(self) -> List[Notification]:
        items, self._items = self._items, []
        return items
