import os
import random
import sys

import pytest

# Ensure the backend root (containing the `stopgame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from stopgame.config import Config
from stopgame.game.models import GameSettings, Player
from stopgame.game.registry import RoomRegistry
from stopgame.server import create_app


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_ASYNC_MODE = 'threading'
    TRUST_PROXY_HEADERS = False
    REASSIGN_HOST_ON_LEAVE = False


class Recorder:
    """Collects room notifications as (room_code, event, payload)."""

    def __init__(self):
        self.events = []

    def factory(self, code):
        def notify(event, payload):
            self.events.append((code, event, payload))
        return notify

    def names(self):
        return [e for _, e, _ in self.events]

    def last(self, event):
        for _, name, payload in reversed(self.events):
            if name == event:
                return payload
        return None

    def clear(self):
        self.events.clear()


def no_spawn(fn):
    return None


def make_player(pid, answers=None, name=None):
    return Player(id=pid, name=name or pid.upper(), answers=dict(answers or {}))


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def registry(recorder):
    return RoomRegistry(
        GameSettings(),
        notifier_factory=recorder.factory,
        spawn=no_spawn,
        rng=random.Random(7),
    )


@pytest.fixture()
def session(registry):
    """A room with three players; p1 is the host."""
    s = registry.open_room('p1', 'Ana')
    registry.join_room(s.code, 'p2', 'Bia')
    registry.join_room(s.code, 'p3', 'Caio')
    return s


@pytest.fixture()
def flask_app():
    application, sio = create_app(TestConfig)
    application.config['SOCKETIO'] = sio
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    sio = flask_app.config['SOCKETIO']
    created = []

    def make():
        c = sio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(c)
        return c

    yield make
    for c in created:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
