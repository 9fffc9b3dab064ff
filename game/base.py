"""
Base class for mini-games played inside a lobby.

A GameSession is created by the LobbyManager when the host starts play and
lives until the game reaches a terminal phase. Every call into a session
happens while the caller holds ``lobby.lock``; timers scheduled through
``schedule`` take the same lock before they run.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from utils.constants import LOBBY_CONFIG
from utils.timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class GameSession(ABC):
    """
    Abstract base class for all mini-games.

    Enforces a standard interface for the lobby to interact with.
    Subclasses map client action names to handler methods in ``ACTIONS``.
    """

    game_type: str = ''
    ACTIONS: Dict[str, str] = {}

    def __init__(self, lobby, broadcaster, scheduler: Scheduler, on_end: Callable[[str, 'GameSession'], None]):
        """
        Initialize the session.

        Args:
            lobby: Owning LobbyData (roster and settings are read from it)
            broadcaster: Broadcaster used for all outbound events
            scheduler: Scheduler for pacing and time limits
            on_end: Called with (lobby code, session) once the end delay has passed
        """
        self.lobby = lobby
        self.lobby_code = lobby.code
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.on_end = on_end
        self.settings: Dict[str, Any] = dict(lobby.settings)
        self._timers: List[TimerHandle] = []

    @abstractmethod
    def start(self):
        """Assign initial state and broadcast the opening events."""

    @abstractmethod
    def add_player(self, player_id: str):
        """A player joined the lobby while this game is running."""

    @abstractmethod
    def remove_player(self, player_id: str):
        """A player left the lobby for good."""

    def on_disconnect(self, player_id: str):
        """A player's connection dropped; they may still come back."""

    @abstractmethod
    def on_reconnect(self, old_id: str, new_id: str):
        """A player came back under a new connection id."""

    @property
    @abstractmethod
    def is_finished(self) -> bool:
        """True once the game has reached a terminal phase."""

    def handle_action(self, player_id: str, action: str, data: Optional[Dict[str, Any]]) -> bool:
        """
        Route a client action to its handler.

        Returns:
            True if the action changed game state, False if it was ignored
        """
        method_name = self.ACTIONS.get(action)
        if not method_name:
            logger.debug(f"Ignoring unknown action {action!r} in {self.game_type} game {self.lobby_code}")
            return False
        if not isinstance(data, dict):
            data = {}
        return bool(getattr(self, method_name)(player_id, data))

    # Timers

    def schedule(self, delay: float, callback: Callable, *args) -> TimerHandle:
        """Schedule a callback that runs under the lobby lock."""
        self._timers = [handle for handle in self._timers if handle.pending]
        handle = self.scheduler.schedule(delay, callback, *args, lock=self.lobby.lock)
        self._timers.append(handle)
        return handle

    def cancel(self, handle: Optional[TimerHandle]):
        self.scheduler.cancel(handle)

    def dispose(self):
        """Cancel every pending timer of this session."""
        for handle in self._timers:
            handle.cancel()
        self._timers = []
        logger.debug(f"Disposed {self.game_type} game for lobby {self.lobby_code}")

    def finish(self):
        """Hand the lobby back after the end-of-game pause."""
        self.schedule(LOBBY_CONFIG['GAME_END_DELAY'], self.on_end, self.lobby_code, self)

    # Broadcasting

    def emit(self, event: str, data: Any = None, skip_id: Optional[str] = None):
        self.broadcaster.to_lobby(self.lobby_code, event, data, skip_id=skip_id)

    def emit_to(self, player_id: str, event: str, data: Any = None):
        self.broadcaster.to_player(player_id, event, data)

    def player_name(self, player_id: str) -> str:
        player = self.lobby.players.get(player_id)
        return player.name if player else 'Unknown'
