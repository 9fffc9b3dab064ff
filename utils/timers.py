"""
Cancellable timers for lobby and game pacing.

Every delayed action in the server (turn limits, voting limits, the
reconnect grace period, pacing pauses between phases and the session
sweep) goes through a Scheduler. A scheduled callback returns a
TimerHandle; cancelling the handle guarantees the callback will not run,
because the flag is re-checked under the owning lobby's lock right
before the callback executes.
"""

import logging
import time
from abc import ABC, abstractmethod
from contextlib import nullcontext
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """A single scheduled callback."""

    def __init__(self, delay: float, callback: Callable, args: tuple = (),
                 kwargs: Optional[dict] = None, lock: Any = None):
        self.delay = delay
        self.callback = callback
        self.args = args
        self.kwargs = kwargs or {}
        self.lock = lock
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        """True while the callback may still run."""
        return not self.cancelled and not self.fired

    def cancel(self):
        self.cancelled = True

    def fire(self):
        """
        Run the callback unless the handle was cancelled.

        The cancelled flag is checked while holding the handle's lock so a
        handler that cancels the timer under the same lock always wins.
        """
        with self.lock if self.lock is not None else nullcontext():
            if self.cancelled or self.fired:
                return
            self.fired = True
            try:
                self.callback(*self.args, **self.kwargs)
            except Exception as e:
                logger.error(f"Error in timer callback {getattr(self.callback, '__name__', self.callback)}: {e}",
                             exc_info=True)


class Scheduler(ABC):
    """Base scheduler interface."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""

    @abstractmethod
    def schedule(self, delay: float, callback: Callable, *args, lock: Any = None, **kwargs) -> TimerHandle:
        """
        Run ``callback(*args, **kwargs)`` after ``delay`` seconds.

        Args:
            delay: Seconds to wait
            callback: Function to call
            lock: Optional lock held while the callback runs

        Returns:
            Handle that can cancel the callback
        """

    @staticmethod
    def cancel(handle: Optional[TimerHandle]):
        """Cancel a handle; ``None`` is ignored."""
        if handle is not None:
            handle.cancel()


class SocketIOScheduler(Scheduler):
    """
    Scheduler backed by Flask-SocketIO background tasks.

    Uses ``socketio.sleep`` so the wait cooperates with whatever async
    mode the server runs under (eventlet in production).
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def now(self) -> float:
        return time.time()

    def schedule(self, delay: float, callback: Callable, *args, lock: Any = None, **kwargs) -> TimerHandle:
        handle = TimerHandle(delay, callback, args, kwargs, lock)
        self.socketio.start_background_task(self._run, handle)
        return handle

    def _run(self, handle: TimerHandle):
        self.socketio.sleep(handle.delay)
        handle.fire()
