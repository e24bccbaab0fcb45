"""Process-wide callbacks notified when scripts change the title or dispatch events."""

import threading
from dataclasses import dataclass
from typing import Callable, Optional

TitleHandler = Callable[[str], None]
EventHandler = Callable[[str, str], None]


@dataclass
class _Handlers:
    title: Optional[TitleHandler] = None
    event: Optional[EventHandler] = None


_lock = threading.Lock()
_handlers = _Handlers()


def set_title_handler(callback: Optional[TitleHandler]) -> None:
    """Install or, with None, remove the title-change callback."""
    with _lock:
        _handlers.title = callback


def notify_title_changed(title: str) -> None:
    with _lock:
        handler = _handlers.title
    if handler is not None:
        handler(title)


def set_event_handler(callback: Optional[EventHandler]) -> None:
    """Install or, with None, remove the dispatched-event callback."""
    with _lock:
        _handlers.event = callback


def notify_event(name: str, detail: str) -> None:
    with _lock:
        handler = _handlers.event
    if handler is not None:
        handler(name, detail)