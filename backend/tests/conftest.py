import os
import sys
import pytest

# Ensure the backend root (containing the `quizroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quizroom import create_app, socketio
from quizroom.config import Config
from quizroom.models import parse_question_set
from quizroom.services.quiz import QuizEngine


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    QUIZ_NAMESPACE = '/'
    # Countdowns only move when a test calls engine.timers.advance()
    TIMER_AUTOSTART = False
    XAI_API_KEY = 'test-key'
    XAI_API_URL = 'https://ai.example.test/v1/chat/completions'


QUESTIONS = [
    {'question': 'What is 2+2?', 'options': ['3', '4', '5', '6'], 'correctIndex': 1},
    {'question': 'Capital of Sweden?', 'options': ['Oslo', 'Helsinki', 'Stockholm', 'Copenhagen'], 'correctIndex': 2},
]


class RecordingGateway:
    """Stands in for the Socket.IO gateway and remembers every delivery."""

    def __init__(self):
        self.sent = []
        self.rooms = {}

    def to_room(self, session, event, payload):
        self.sent.append((session.room, event, payload))

    def to_host(self, session, event, payload):
        if session.host_sid:
            self.sent.append((session.host_sid, event, payload))

    def to_connection(self, sid, event, payload):
        self.sent.append((sid, event, payload))

    def join(self, sid, session):
        self.rooms.setdefault(session.room, set()).add(sid)

    def close(self, session):
        self.rooms.pop(session.room, None)

    def payloads(self, event, to=None):
        return [p for (target, name, p) in self.sent if name == event and (to is None or target == to)]

    def last(self, event, to=None):
        found = self.payloads(event, to)
        return found[-1] if found else None

    def clear(self):
        self.sent = []


@pytest.fixture()
def question_set():
    return parse_question_set(QUESTIONS)


@pytest.fixture()
def gateway():
    return RecordingGateway()


@pytest.fixture()
def engine(gateway):
    return QuizEngine.build(gateway, config={'TICK_INTERVAL_SEC': 1.0}, autostart=False)


@pytest.fixture()
def lobby(engine, question_set):
    """A session with a bound host ('host-sid') and two players."""
    session = engine.sessions.create('Test Quiz', question_set)
    engine.host_join('host-sid', session.id)
    engine.player_join('alice-sid', session.id, 'Alice')
    engine.player_join('bob-sid', session.id, 'Bob')
    return session


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
