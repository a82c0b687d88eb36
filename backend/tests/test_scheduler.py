import logging
import threading
import time

from livequiz.services.quiz.scheduler import AdvanceTimer, make_timer_factory


class ThreadSpawner:
    """Stands in for socketio.start_background_task and keeps the threads for joining."""

    def __init__(self):
        self.threads = []

    def __call__(self, target, *args):
        thread = threading.Thread(target=target, args=args, daemon=True)
        self.threads.append(thread)
        thread.start()
        return thread

    def join(self, timeout=2.0):
        for thread in self.threads:
            thread.join(timeout)
        return all(not thread.is_alive() for thread in self.threads)


def test_timer_calls_back_with_itself_after_delay():
    spawn = ThreadSpawner()
    calls = []
    timer = AdvanceTimer(20, calls.append, spawn).start()
    assert spawn.join()
    assert calls == [timer]
    assert not timer.cancelled


def test_cancel_before_delay_skips_callback_and_wakes_early():
    spawn = ThreadSpawner()
    calls = []
    timer = AdvanceTimer(10_000, calls.append, spawn).start()
    started = time.monotonic()
    timer.cancel()
    assert spawn.join(timeout=2.0)
    assert time.monotonic() - started < 2.0
    assert timer.cancelled
    assert calls == []


def test_callback_error_is_logged(caplog):
    spawn = ThreadSpawner()

    def explode(timer):
        raise RuntimeError('boom')

    with caplog.at_level(logging.ERROR, logger='livequiz.services.quiz.scheduler'):
        AdvanceTimer(1, explode, spawn).start()
        assert spawn.join()
    assert any('[timer-error]' in record.getMessage() for record in caplog.records)


def test_factory_starts_timers_as_background_tasks():
    spawn = ThreadSpawner()

    class FakeSocketIO:
        start_background_task = staticmethod(spawn)

    fired = threading.Event()
    timer = make_timer_factory(FakeSocketIO())(5, lambda t: fired.set())
    assert isinstance(timer, AdvanceTimer)
    assert fired.wait(2.0)
    assert len(spawn.threads) == 1
