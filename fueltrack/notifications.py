"""Publish/subscribe channel for user-facing messages."""

import itertools
from dataclasses import dataclass
from typing import Callable, Dict, Optional

# Milliseconds a message stays visible when the caller gives no duration.
DEFAULT_DURATIONS = {
    "success": 3000,
    "error": 4000,
    "info": 3000,
    "warning": 3500,
}


@dataclass
class Notice:
    id: int
    level: str
    message: str
    duration: int


class Notifier:
    """
    Delivers notices to every subscriber.

    Usage:
        notifier = Notifier()
        unsubscribe = notifier.subscribe(lambda n: print(n.message))
        notifier.success("Saved")
        unsubscribe()
    """

    def __init__(self):
        self._subscribers: Dict[int, Callable[[Notice], None]] = {}
        self._ids = itertools.count()
        self._notice_ids = itertools.count()

    def subscribe(self, callback: Callable[[Notice], None]) -> Callable[[], None]:
        """Register a callback; returns a function that removes it again."""
        token = next(self._ids)
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, level: str, message: str, duration: Optional[int] = None) -> Notice:
        if level not in DEFAULT_DURATIONS:
            raise ValueError(f"Unknown notice level: {level}")
        notice = Notice(
            id=next(self._notice_ids),
            level=level,
            message=message,
            duration=duration if duration is not None else DEFAULT_DURATIONS[level],
        )
        for callback in list(self._subscribers.values()):
            callback(notice)
        return notice

    def success(self, message: str, duration: Optional[int] = None) -> Notice:
        return self.publish("success", message, duration)

    def error(self, message: str, duration: Optional[int] = None) -> Notice:
        return self.publish("error", message, duration)

    def info(self, message: str, duration: Optional[int] = None) -> Notice:
        return self.publish("info", message, duration)

    def warning(self, message: str, duration: Optional[int] = None) -> Notice:
        return self.publish("warning", message, duration)
