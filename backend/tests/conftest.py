import os
import sys
import pytest

# Ensure the backend root (containing the `chessroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from chessroom import create_app, socketio
from chessroom.services.rooms.registry import RoomRegistry
from chessroom.services.rooms.clock import ClockSynchronizer


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    MAX_ROOMS = 100
    CLOCK_SECONDS = 900
    CLOCK_RESYNC_SEC = 10
    SOCKETIO_NAMESPACE = '/'


class RecordingNotifier:
    """Stands in for the Socket.IO emitter in registry and clock tests."""

    def __init__(self):
        self.events = []

    def __call__(self, event, payload=None, *, room, skip_sid=None):
        self.events.append({'name': event, 'payload': payload, 'room': room, 'skip_sid': skip_sid})

    def names(self):
        return [e['name'] for e in self.events]

    def named(self, name):
        return [e for e in self.events if e['name'] == name]

    def clear(self):
        self.events.clear()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def registry(notifier):
    return RoomRegistry(notifier, max_rooms=3, clock_seconds=900)


@pytest.fixture()
def clock(registry, notifier):
    return ClockSynchronizer(registry, notifier, resync_interval=10)


@pytest.fixture()
def started_room(registry, notifier):
    """Room ABCD with both seats taken and both players ready."""
    registry.join('ABCD', 'white', 'sid-w')
    registry.join('ABCD', 'black', 'sid-b')
    registry.set_ready('ABCD', 'sid-w')
    registry.set_ready('ABCD', 'sid-b')
    notifier.clear()
    return registry.get('ABCD')


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def app_factory():
    """Build an app whose config overrides TestConfig with keyword args."""
    def _make(**overrides):
        return create_app(type('OverrideConfig', (TestConfig,), overrides))
    return _make


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_clients(flask_app):
    """Factory for Socket.IO test clients; all are disconnected on teardown."""
    created = []

    def _make(app=None):
        app = app or flask_app
        test_client = socketio.test_client(app, flask_test_client=app.test_client())
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
