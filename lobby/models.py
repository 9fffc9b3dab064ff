"""
Data models for lobby management.

These are pure data structures used to pass information between
lobby management, game systems, and handlers. Serializers produce the
camelCase payloads the browser client expects.
"""

import threading
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple
from datetime import datetime

from utils.constants import HOST_COLOR, LOBBY_STATES


@dataclass
class PlayerBoardState:
    """Per-player state on a game board (cursor, selections, score)."""
    cursor: Optional[Tuple[float, float]] = None
    selections: List[str] = field(default_factory=list)
    score: int = 0

    def reset(self):
        self.cursor = None
        self.selections = []
        self.score = 0


@dataclass
class PlayerData:
    """Represents a player in a lobby, keyed by their current connection id."""
    id: str
    name: str
    color: str = HOST_COLOR
    is_host: bool = False
    is_spectator: bool = False
    is_connected: bool = True
    board: PlayerBoardState = field(default_factory=PlayerBoardState)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'isHost': self.is_host,
            'isSpectator': self.is_spectator,
            'isConnected': self.is_connected
        }


@dataclass
class LobbyData:
    """Represents a lobby's current state."""
    code: str
    host_id: str
    players: Dict[str, PlayerData] = field(default_factory=dict)
    game_type: Optional[str] = None
    settings: Dict[str, Any] = field(default_factory=dict)
    state: str = LOBBY_STATES['SELECTING']
    game: Optional[Any] = None
    created_at: datetime = field(default_factory=datetime.now)
    lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def host(self) -> Optional[PlayerData]:
        return self.players.get(self.host_id)

    @property
    def is_playing(self) -> bool:
        return self.state == LOBBY_STATES['PLAYING']

    def first_player_id(self, exclude: Optional[str] = None) -> Optional[str]:
        """First player in join order, optionally skipping one id."""
        for player_id in self.players:
            if player_id != exclude:
                return player_id
        return None

    def set_host(self, player_id: str):
        """Make the given player the only host."""
        for pid, player in self.players.items():
            player.is_host = pid == player_id
        self.host_id = player_id

    def rekey_player(self, old_id: str, new_id: str) -> Optional[PlayerData]:
        """
        Move a roster entry from one connection id to another.

        The entry keeps its position in join order and its board state.

        Returns:
            The moved player, or None if ``old_id`` was not in the roster
        """
        if old_id not in self.players:
            return None
        rebuilt = {}
        moved = None
        for pid, player in self.players.items():
            if pid == old_id:
                player.id = new_id
                rebuilt[new_id] = player
                moved = player
            elif pid != new_id:
                rebuilt[pid] = player
        self.players = rebuilt
        if self.host_id == old_id:
            self.host_id = new_id
        return moved

    def reset_after_game(self):
        """Return to gamemode selection with a clean roster."""
        self.game = None
        self.game_type = None
        self.state = LOBBY_STATES['SELECTING']
        for player in self.players.values():
            player.is_spectator = False
            player.board.reset()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'code': self.code,
            'gameType': self.game_type,
            'host': self.host_id,
            'players': [p.to_dict() for p in self.players.values()],
            'settings': dict(self.settings),
            'state': self.state
        }


@dataclass
class LobbyListItem:
    """Lightweight lobby info for listing lobbies."""
    code: str
    player_count: int
    state: str
    game_type: Optional[str]
    host_name: Optional[str]

    @classmethod
    def from_lobby(cls, lobby: LobbyData) -> 'LobbyListItem':
        host = lobby.host
        return cls(
            code=lobby.code,
            player_count=lobby.player_count,
            state=lobby.state,
            game_type=lobby.game_type,
            host_name=host.name if host else None
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'code': self.code,
            'playerCount': self.player_count,
            'state': self.state,
            'gameType': self.game_type,
            'hostName': self.host_name
        }
