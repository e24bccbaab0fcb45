"""Timers and task queues for a script event loop."""

import enum
import itertools
import logging
import time
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

_log = logging.getLogger(__name__)
_macrotask_ids = itertools.count(1)


class TimerKind(enum.Enum):
    TIMEOUT = "timeout"
    INTERVAL = "interval"


@dataclass(frozen=True)
class TimerHandle:
    """Identifies a scheduled timer; ``interval`` is in seconds."""

    id: int
    kind: TimerKind
    interval: float
    created_at: float


@dataclass
class _TimerEntry:
    id: int
    fire_at: float
    interval: float
    kind: TimerKind
    handler: Any


@dataclass(frozen=True)
class Macrotask:
    id: int
    handler: Any
    args: list = field(default_factory=list)


class TaskQueue:
    """FIFO queues of microtasks and macrotasks."""

    def __init__(self) -> None:
        self.microtasks: deque = deque()
        self.macrotasks: deque = deque()

    def enqueue_microtask(self, task: Any) -> None:
        self.microtasks.append(task)

    def enqueue_macrotask(self, handler: Any, args: list) -> None:
        self.macrotasks.append(Macrotask(next(_macrotask_ids), handler, list(args)))

    def drain_microtasks(self) -> list:
        drained = list(self.microtasks)
        self.microtasks.clear()
        return drained

    def next_macrotask(self) -> Optional[Macrotask]:
        return self.macrotasks.popleft() if self.macrotasks else None

    def is_empty(self) -> bool:
        return not self.microtasks and not self.macrotasks


class EventLoop:
    """Timer bookkeeping plus a task queue; ``clock`` returns seconds."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._timers: list[_TimerEntry] = []
        self._task_queue = TaskQueue()
        self._next_timer_id = 1

    @property
    def task_queue(self) -> TaskQueue:
        return self._task_queue

    def schedule_timer(
        self, timer_id: int, interval: float, kind: TimerKind, handler: Any
    ) -> TimerHandle:
        now = self._clock()
        self._timers.append(_TimerEntry(timer_id, now + interval, interval, kind, handler))
        _log.debug("Timer %d scheduled (%s, %.3fs)", timer_id, kind.value, interval)
        return TimerHandle(timer_id, kind, interval, now)

    def cancel_timer(self, handle: TimerHandle) -> None:
        self._timers = [entry for entry in self._timers if entry.id != handle.id]
        _log.debug("Timer %d cancelled", handle.id)

    def process_pending_timers(self) -> list[tuple[Any, list]]:
        """Return the handlers of due timers, rescheduling intervals."""
        now = self._clock()
        due = [entry for entry in self._timers if entry.fire_at <= now]
        if not due:
            return []
        self._timers = [entry for entry in self._timers if entry.fire_at > now]
        fired = []
        for entry in due:
            _log.debug("Timer %d fired", entry.id)
            fired.append((entry.handler, []))
            if entry.kind is TimerKind.INTERVAL:
                self._timers.append(replace(entry, fire_at=now + entry.interval))
        return fired

    def enqueue_microtask(self, task: Any) -> None:
        self._task_queue.enqueue_microtask(task)

    def enqueue_macrotask(self, handler: Any, args: list) -> None:
        self._task_queue.enqueue_macrotask(handler, args)

    def process_microtasks(self) -> list:
        return self._task_queue.drain_microtasks()

    def next_macrotask(self) -> Optional[Macrotask]:
        return self._task_queue.next_macrotask()

    def next_timer_id(self) -> int:
        timer_id = self._next_timer_id
        self._next_timer_id += 1
        return timer_id