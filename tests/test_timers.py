import logging
import threading

import pytest

from utils.timers import Scheduler, SocketIOScheduler, TimerHandle


def test_handle_fires_once():
    calls = []
    handle = TimerHandle(1, calls.append, ('tick',))

    handle.fire()
    handle.fire()

    assert calls == ['tick']
    assert handle.fired
    assert not handle.pending


def test_cancelled_handle_never_fires():
    calls = []
    handle = TimerHandle(1, calls.append, ('tick',))

    Scheduler.cancel(handle)
    handle.fire()

    assert calls == []
    assert not handle.pending


def test_cancel_ignores_none():
    Scheduler.cancel(None)


def test_callback_runs_holding_lock():
    lock = threading.RLock()
    seen = []

    def callback():
        result = []
        probe = threading.Thread(target=lambda: result.append(lock.acquire(blocking=False)))
        probe.start()
        probe.join()
        seen.append(result[0])

    TimerHandle(0, callback, lock=lock).fire()

    assert seen == [False]


def test_cancel_under_lock_wins_over_pending_fire():
    lock = threading.RLock()
    calls = []
    handle = TimerHandle(0, calls.append, ('tick',), lock=lock)

    with lock:
        handle.cancel()
    handle.fire()

    assert calls == []


def test_callback_errors_are_logged(caplog):
    def explode():
        raise RuntimeError('boom')

    with caplog.at_level(logging.ERROR, logger='utils.timers'):
        TimerHandle(0, explode).fire()

    assert 'boom' in caplog.text


class FakeSocketIO:
    def __init__(self):
        self.tasks = []
        self.slept = []

    def start_background_task(self, target, *args):
        self.tasks.append((target, args))

    def sleep(self, seconds):
        self.slept.append(seconds)


def test_socketio_scheduler_sleeps_then_fires():
    socketio = FakeSocketIO()
    scheduler = SocketIOScheduler(socketio)
    calls = []

    handle = scheduler.schedule(2.5, calls.append, 'done')
    assert calls == []

    target, args = socketio.tasks[0]
    target(*args)

    assert socketio.slept == [2.5]
    assert calls == ['done']
    assert handle.fired


def test_scheduler_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Scheduler()
