from __future__ import annotations

from dataclasses import dataclass
from itertools import count
from typing import List

from loguru import logger

TOAST = "toast"
BANNER = "banner"

MAX_TOASTS = 5


@dataclass(frozen=True)
class Notification:
    id: int
    kind: str   # "toast" | "banner"
    level: str  # "success" | "info" | "warning" | "error"
    message: str


class NotificationCenter:
    """
    Non-blocking, dismissible messages for the presentation layer.

    Toasts pile up (oldest dropped past MAX_TOASTS); there is at most one
    banner, a new one replaces the old.
    """

    def __init__(self) -> None:
        self._ids = count(1)
        self._items: List[Notification] = []

    def toast(self, message: str, level: str = "info") -> Notification:
        n = Notification(next(self._ids), TOAST, level, message)
        self._items.append(n)
        toasts = [x for x in self._items if x.kind == TOAST]
        if len(toasts) > MAX_TOASTS:
            self._items.remove(toasts[0])
        return n

    def banner(self, message: str, level: str = "warning") -> Notification:
        self.clear(BANNER)
        n = Notification(next(self._ids), BANNER, level, message)
        self._items.append(n)
        return n

    def dismiss(self, notification_id: int) -> bool:
        for n in self._items:
            if n.id == notification_id:
                self._items.remove(n)
                return True
        logger.debug("Notification {} already gone", notification_id)
        return False

    def clear(self, kind: str) -> None:
        self._items = [n for n in self._items if n.kind != kind]

    def active(self) -> List[Notification]:
        return list(self._items)
