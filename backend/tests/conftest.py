import os
import sys
import pytest

# Ensure the backend root (containing the `dropfour` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from dropfour import create_app, socketio
from dropfour.services.rooms import Channel, GracePeriodManager, RoomRegistry, SessionCoordinator


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ROOM_GRACE_PERIOD_SEC = 300
    ROOM_CODE_LENGTH = 6
    ALLOWED_ORIGINS = ['*']
    SOCKETIO_NAMESPACE = '/'


class RecordingChannel(Channel):
    """Channel that remembers what would have gone over the wire."""

    def __init__(self):
        self.sent = []
        self.broadcasts = []
        self.members = {}

    def send(self, participant_id, event, payload):
        self.sent.append((participant_id, event, payload))

    def broadcast(self, room_id, event, payload):
        self.broadcasts.append((room_id, event, payload))

    def subscribe(self, participant_id, room_id):
        self.members.setdefault(room_id, set()).add(participant_id)

    def unsubscribe(self, participant_id, room_id):
        self.members.get(room_id, set()).discard(participant_id)

    def events_for(self, participant_id):
        return [(event, payload) for pid, event, payload in self.sent if pid == participant_id]

    def broadcast_events(self, room_id):
        return [(event, payload) for rid, event, payload in self.broadcasts if rid == room_id]


class ManualTasks:
    """Stand-in for socketio.start_background_task that runs nothing until told to."""

    def __init__(self):
        self.tasks = []

    def start(self, target, *args):
        self.tasks.append((target, args))

    def run_all(self):
        tasks, self.tasks = self.tasks, []
        for target, args in tasks:
            target(*args)


def _fixed_codes(*codes):
    pending = list(codes)

    def factory(length):
        return pending.pop(0)
    return factory


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def factory():
        test_client = socketio.test_client(flask_app)
        clients.append(test_client)
        return test_client
    yield factory
    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()


@pytest.fixture()
def tasks():
    return ManualTasks()


@pytest.fixture()
def registry():
    return RoomRegistry(code_factory=_fixed_codes('ABC123', 'DEF456', 'GHI789'))


@pytest.fixture()
def grace(registry, tasks):
    return GracePeriodManager(registry, start_task=tasks.start, sleep=lambda _: None)


@pytest.fixture()
def channel():
    return RecordingChannel()


@pytest.fixture()
def coordinator(registry, grace, channel):
    return SessionCoordinator(registry, grace, channel, grace_period_sec=300)
