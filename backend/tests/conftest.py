import os
import sys
import pytest

# Ensure the backend root (containing the `livequiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from livequiz import create_app, socketio
from livequiz.services.quiz import Session

NAMESPACE = '/ws'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = NAMESPACE
    DEFAULT_QUESTION_DURATION_MS = 15000
    ADVANCE_GRACE_MS = 50
    MAX_NAME_LENGTH = 40
    SESSION_IDLE_TIMEOUT_SEC = 0
    IDLE_SWEEP_INTERVAL_SEC = 60
    LOG_LEVEL = 'DEBUG'


class ManualClock:
    """Millisecond clock that only moves when a test says so."""

    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class ManualTimer:
    def __init__(self, delay_ms, callback):
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        # Deliberately ignores `cancelled`: simulates a timer that woke just before cancel()
        self.fired = True
        self.callback(self)


class ManualTimers(list):
    def __call__(self, delay_ms, callback):
        timer = ManualTimer(delay_ms, callback)
        self.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self if not (t.cancelled or t.fired)]


class BroadcastRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event, payload):
        self.events.append((event, payload))

    def of(self, event):
        return [payload for name, payload in self.events if name == event]

    def names(self):
        return [name for name, _ in self.events]

    def clear(self):
        self.events.clear()


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def timers():
    return ManualTimers()


@pytest.fixture()
def events():
    return BroadcastRecorder()


@pytest.fixture()
def session_factory(clock, timers, events):
    def _factory(code='123456', host_sid='host-sid'):
        return Session(code, host_sid, events, timers, clock=clock)
    return _factory


@pytest.fixture()
def session(session_factory):
    return session_factory()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Open Socket.IO test clients on the quiz namespace; all are closed on teardown."""
    opened = []

    def _connect():
        test_client = socketio.test_client(flask_app, namespace=NAMESPACE)
        test_client.get_received(NAMESPACE)  # flush 'connected'
        opened.append(test_client)
        return test_client

    yield _connect
    for test_client in opened:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass
