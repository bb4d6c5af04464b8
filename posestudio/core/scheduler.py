"""
Cancellable timer scheduling for capture sessions.

Sessions never create timers directly: they go through a :class:`Scheduler`
so the Qt event loop drives them in the application and a manual clock drives
them in tests.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Set

from PySide6.QtCore import Qt, QTimer


class TimerHandle(ABC):
    """Handle to a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop the timer. Cancelling twice is a no-op."""
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        """Whether the callback can still fire."""
        pass


class Scheduler(ABC):
    """Single-threaded source of one-shot and repeating timers."""

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_ms``."""
        pass

    @abstractmethod
    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` every ``interval_ms`` until cancelled."""
        pass

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""
        pass


class TimerGroup:
    """The set of timers owned by one phase; cancelled together."""

    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler
        self._handles: List[TimerHandle] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        handle = self.scheduler.call_later(delay_ms, callback)
        self._handles.append(handle)
        return handle

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        handle = self.scheduler.call_every(interval_ms, callback)
        self._handles.append(handle)
        return handle

    def cancel_all(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._handles if handle.active)


class _QtTimerHandle(TimerHandle):
    def __init__(self, timer: QTimer, on_cancel: Optional[Callable[["_QtTimerHandle"], None]] = None):
        self._timer = timer
        self._cancelled = False
        self._on_cancel = on_cancel

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._timer.stop()
        self._timer.deleteLater()
        if self._on_cancel is not None:
            self._on_cancel(self)

    @property
    def active(self) -> bool:
        return not self._cancelled and self._timer.isActive()


class QtScheduler(Scheduler):
    """Scheduler backed by ``QTimer`` on the running Qt event loop."""

    def __init__(self, parent=None):
        self.parent = parent
        # Parentless QTimers are only kept alive by these references
        self._live: Set[TimerHandle] = set()

    def _start(self, ms: int, callback: Callable[[], None], single_shot: bool) -> TimerHandle:
        timer = QTimer(self.parent)
        timer.setSingleShot(single_shot)
        timer.setTimerType(Qt.PreciseTimer)
        handle = _QtTimerHandle(timer, self._live.discard)

        def fire():
            # A queued timeout can still be delivered after stop()
            if handle._cancelled:
                return
            if single_shot:
                handle.cancel()
            callback()

        timer.timeout.connect(fire)
        timer.start(max(0, int(ms)))
        self._live.add(handle)
        return handle

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        return self._start(delay_ms, callback, single_shot=True)

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        return self._start(interval_ms, callback, single_shot=False)

    @property
    def pending(self) -> int:
        return len(self._live)

    def now(self) -> float:
        return time.monotonic()
