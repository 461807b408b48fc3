"""
Debounce timer owned by whoever holds the input box.

Every keystroke calls schedule(); only the last callback within the delay
runs. The scheduler is pluggable so the console can use its own event loop
timers; the default uses threading.Timer.
"""

import threading
from typing import Any, Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], Any]], TimerHandle]


def thread_scheduler(delay: float, callback: Callable[[], Any]) -> TimerHandle:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class Debouncer:
    def __init__(self, delay: float, scheduler: Optional[Scheduler] = None):
        if delay < 0:
            raise ValueError(f"Delay must be >= 0: {delay}")
        self.delay = delay
        self._scheduler = scheduler or thread_scheduler
        self._handle: Optional[TimerHandle] = None
        self._token: Optional[object] = None
        self._lock = threading.RLock()

    @property
    def pending(self) -> bool:
        return self._token is not None

    def schedule(self, callback: Callable[[], Any], delay: Optional[float] = None) -> None:
        """Replace any pending callback with this one."""
        with self._lock:
            self._cancel_locked()
            token = object()
            self._token = token

            def fire():
                with self._lock:
                    # A newer schedule() or cancel() already replaced us
                    if self._token is not token:
                        return
                    self._token = None
                    self._handle = None
                callback()

            handle = self._scheduler(self.delay if delay is None else delay, fire)
            if self._token is token:
                self._handle = handle

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._token = None
