"""
Session Store for Party Arcade lobbies.

Maps the opaque session token a browser keeps across page loads to the
last known state of that player, and tracks players who dropped their
connection but may still come back within the grace period.
Contains no lobby logic - the LobbyManager decides what a session means.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from utils.constants import SESSION_CONFIG
from utils.timers import TimerHandle

logger = logging.getLogger(__name__)


@dataclass
class PlayerSnapshot:
    """What we remember about a player between connections."""
    name: str
    color: str
    was_host: bool = False
    host_lost_at: Optional[float] = None


@dataclass
class PlayerSession:
    """Information about a player's session."""
    token: str
    lobby_code: str
    snapshot: PlayerSnapshot
    last_seen_at: float
    last_connection_id: str


@dataclass
class DisconnectRecord:
    """A player whose connection dropped and who may still reconnect."""
    connection_id: str
    lobby_code: str
    token: Optional[str]
    disconnected_at: float
    was_host: bool
    deadline: float
    timer: Optional[TimerHandle] = field(default=None, repr=False)


class SessionStore:
    """
    Keeps player sessions and disconnect records in memory.

    All times come from the injected clock so expiry can be tested
    without waiting.
    """

    def __init__(self, clock: Callable[[], float],
                 session_timeout: float = SESSION_CONFIG['SESSION_TIMEOUT']):
        """
        Initialize session store.

        Args:
            clock: Returns the current time in seconds
            session_timeout: Seconds of inactivity before a session expires
        """
        self.clock = clock
        self.session_timeout = session_timeout
        self.sessions: Dict[str, PlayerSession] = {}
        self.disconnects: Dict[str, DisconnectRecord] = {}
        self._lock = threading.RLock()
        logger.debug("Session store initialized")

    def save_session(self, token: str, lobby_code: str, connection_id: str,
                     name: str, color: str, is_host: bool) -> PlayerSession:
        """
        Create or overwrite the session for a token.

        Args:
            token: Client supplied session token
            lobby_code: Lobby the player is in
            connection_id: Current connection id
            name: Display name
            color: Player color
            is_host: Whether the player is host right now

        Returns:
            The stored session
        """
        session = PlayerSession(
            token=token,
            lobby_code=lobby_code,
            snapshot=PlayerSnapshot(name=name, color=color, was_host=is_host),
            last_seen_at=self.clock(),
            last_connection_id=connection_id
        )
        with self._lock:
            self.sessions[token] = session
        logger.debug(f"Saved session {token[:8]} for lobby {lobby_code}")
        return session

    def get_session(self, token: Optional[str]) -> Optional[PlayerSession]:
        if not token:
            return None
        with self._lock:
            return self.sessions.get(token)

    def is_expired(self, session: PlayerSession) -> bool:
        return self.clock() - session.last_seen_at > self.session_timeout

    def touch(self, token: Optional[str]):
        """Refresh a session's last-seen time."""
        session = self.get_session(token)
        if session:
            session.last_seen_at = self.clock()

    def delete_session(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self.sessions.pop(token, None) is not None

    def record_disconnect(self, record: DisconnectRecord):
        with self._lock:
            self.disconnects[record.connection_id] = record

    def pop_disconnect(self, connection_id: str) -> Optional[DisconnectRecord]:
        """
        Remove a disconnect record and cancel its eviction timer.

        Returns:
            The removed record, or None if there was none
        """
        with self._lock:
            record = self.disconnects.pop(connection_id, None)
        if record and record.timer:
            record.timer.cancel()
        return record

    def sweep_expired(self) -> int:
        """
        Delete every session that has not been seen within the timeout.

        Returns:
            Number of sessions removed
        """
        with self._lock:
            expired: List[str] = [
                token for token, session in self.sessions.items()
                if self.is_expired(session)
            ]
            for token in expired:
                del self.sessions[token]

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired sessions")
        return len(expired)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'sessions': len(self.sessions),
                'pending_disconnects': len(self.disconnects)
            }
