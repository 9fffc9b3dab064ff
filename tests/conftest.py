import os
import sys
from collections import defaultdict

import pytest

# Ensure the repository root (containing app.py) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from game.puzzle_corpus import PuzzleCorpus  # noqa: E402
from lobby.manager import LobbyManager  # noqa: E402
from utils.timers import Scheduler, TimerHandle  # noqa: E402


PUZZLE_RECORDS = [
    {
        'id': 'colors-animals',
        'categories': [
            {'name': 'COLORS', 'difficulty': 0, 'words': ['RED', 'BLUE', 'GREEN', 'PINK']},
            {'name': 'BIRDS', 'difficulty': 1, 'words': ['ROBIN', 'CROW', 'SWAN', 'WREN']},
            {'name': 'METALS', 'difficulty': 2, 'words': ['IRON', 'GOLD', 'TIN', 'LEAD']},
            {'name': 'TREES', 'difficulty': 3, 'words': ['OAK', 'ELM', 'ASH', 'PINE']}
        ]
    },
    {
        'id': 'overlap',
        'categories': [
            {'name': 'DOGS', 'difficulty': 0, 'words': ['PUG', 'BOXER', 'LAB', 'HUSKY']},
            {'name': 'ALSO COLORS', 'difficulty': 1, 'words': ['RED', 'TEAL', 'CYAN', 'NAVY']},
            {'name': 'FRUIT', 'difficulty': 2, 'words': ['PEAR', 'PLUM', 'FIG', 'LIME']},
            {'name': 'CARDS', 'difficulty': 3, 'words': ['ACE', 'KING', 'QUEEN', 'JACK']}
        ]
    }
]


class ManualScheduler(Scheduler):
    """Scheduler driven by a fake clock; timers fire only inside ``advance``."""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.entries = []
        self._seq = 0

    def now(self) -> float:
        return self.current

    def schedule(self, delay, callback, *args, lock=None, **kwargs):
        handle = TimerHandle(delay, callback, args, kwargs, lock)
        self._seq += 1
        self.entries.append((self.current + delay, self._seq, handle))
        return handle

    def advance(self, seconds: float):
        """Move the clock forward, firing due timers in order."""
        target = self.current + seconds
        while True:
            due = [entry for entry in self.entries if entry[0] <= target and entry[2].pending]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self.entries.remove(entry)
            self.current = max(self.current, entry[0])
            entry[2].fire()
        self.current = target
        self.entries = [entry for entry in self.entries if entry[2].pending]

    @property
    def pending_count(self) -> int:
        return sum(1 for entry in self.entries if entry[2].pending)


class RecordingBroadcaster:
    """Broadcaster that records every event instead of sending it."""

    def __init__(self):
        self.events = []  # (scope, target, event, data, skip_id)
        self.rooms = defaultdict(set)

    def to_lobby(self, lobby_code, event, data=None, skip_id=None):
        self.events.append(('lobby', lobby_code, event, data, skip_id))

    def to_player(self, connection_id, event, data=None):
        self.events.append(('player', connection_id, event, data, None))

    def join(self, connection_id, lobby_code):
        self.rooms[lobby_code].add(connection_id)

    def leave(self, connection_id, lobby_code):
        self.rooms[lobby_code].discard(connection_id)

    def named(self, event):
        """Payloads of every event with this name, oldest first."""
        return [e[3] for e in self.events if e[2] == event]

    def last(self, event):
        payloads = self.named(event)
        return payloads[-1] if payloads else None

    def sent_to(self, connection_id, event):
        """Payloads privately delivered to one connection."""
        return [e[3] for e in self.events if e[0] == 'player' and e[1] == connection_id and e[2] == event]

    def clear(self):
        self.events = []


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def corpus():
    return PuzzleCorpus.from_records(PUZZLE_RECORDS)


@pytest.fixture()
def manager(broadcaster, scheduler, corpus):
    return LobbyManager(broadcaster, scheduler, corpus)


@pytest.fixture()
def lobby_of(manager):
    """Create a lobby with a host and any number of joiners (all with session tokens)."""

    def build(*names, game_type=None, settings=None):
        host_name, *others = names
        manager.handle_connect('sid-0', 'token-0')
        _, _, lobby = manager.create_lobby('sid-0', host_name, game_type=game_type, settings=settings)
        for index, name in enumerate(others, start=1):
            manager.handle_connect(f'sid-{index}', f'token-{index}')
            manager.join_lobby(f'sid-{index}', lobby.code, name)
        return lobby

    return build


@pytest.fixture()
def socket_app(scheduler, corpus):
    from app import create_app
    app, socketio = create_app(scheduler=scheduler, corpus=corpus, async_mode='threading')
    app.config['TESTING'] = True
    return app, socketio


@pytest.fixture()
def sio_factory(socket_app):
    app, socketio = socket_app
    clients = []

    def connect(session_id=None):
        auth = {'sessionId': session_id} if session_id else None
        test_client = socketio.test_client(app, auth=auth)
        clients.append(test_client)
        return test_client

    yield connect
    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()
