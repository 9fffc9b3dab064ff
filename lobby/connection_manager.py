"""
Connection Manager for Party Arcade lobbies.

Tracks live Socket.IO connections: which lobby each connection is in and
which session token it presented. Contains no lobby or game logic - pure
connection bookkeeping.
"""

import logging
import threading
from typing import Dict, Optional, List, Any
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ConnectionInfo:
    """Information about a live connection."""
    connection_id: str
    session_token: Optional[str]
    lobby_code: Optional[str] = None


class ConnectionManager:
    """
    Manages live connections across lobbies.

    A connection id is only valid until its socket drops; stable player
    identity lives in the SessionStore.
    """

    def __init__(self):
        self.connections: Dict[str, ConnectionInfo] = {}  # connection_id -> ConnectionInfo
        self._lock = threading.RLock()
        logger.debug("Connection manager initialized")

    def register_connection(self, connection_id: str) -> ConnectionInfo:
        """
        Register a new connection with no session and no lobby yet.

        Args:
            connection_id: Socket connection id

        Returns:
            The connection record
        """
        info = ConnectionInfo(connection_id=connection_id, session_token=None)
        with self._lock:
            self.connections[connection_id] = info
        logger.info(f"Registered connection {connection_id}")
        return info

    def attach_session(self, connection_id: str, session_token: Optional[str]) -> bool:
        """Remember the session token a connection presented."""
        with self._lock:
            info = self.connections.get(connection_id)
            if not info:
                return False
            info.session_token = session_token
            return True

    def get_session_token(self, connection_id: str) -> Optional[str]:
        with self._lock:
            info = self.connections.get(connection_id)
            return info.session_token if info else None

    def associate_with_lobby(self, connection_id: str, lobby_code: str) -> bool:
        """
        Associate a connection with a lobby.

        Returns:
            True if associated successfully, False if the connection is unknown
        """
        with self._lock:
            info = self.connections.get(connection_id)
            if not info:
                return False
            info.lobby_code = lobby_code
        logger.debug(f"Associated {connection_id} with lobby {lobby_code}")
        return True

    def disassociate_from_lobby(self, connection_id: str) -> Optional[str]:
        """
        Disassociate a connection from its lobby.

        Returns:
            Previous lobby code, or None if not associated
        """
        with self._lock:
            info = self.connections.get(connection_id)
            if not info:
                return None
            previous_lobby = info.lobby_code
            info.lobby_code = None
        logger.debug(f"Disassociated {connection_id} from lobby {previous_lobby}")
        return previous_lobby

    def resolve_lobby(self, connection_id: str) -> Optional[str]:
        """Lobby code the connection is in, or None."""
        with self._lock:
            info = self.connections.get(connection_id)
            return info.lobby_code if info else None

    def detach(self, connection_id: str) -> Optional[ConnectionInfo]:
        """
        Forget a connection entirely.

        Returns:
            The removed record, or None if the connection was unknown
        """
        with self._lock:
            info = self.connections.pop(connection_id, None)
        if info:
            logger.debug(f"Detached connection {connection_id}")
        return info

    def forget_lobby(self, lobby_code: str) -> List[str]:
        """
        Clear the lobby association of every connection in a deleted lobby.

        Returns:
            Connection ids that were associated with the lobby
        """
        with self._lock:
            affected = [cid for cid, info in self.connections.items() if info.lobby_code == lobby_code]
            for cid in affected:
                self.connections[cid].lobby_code = None
        return affected

    def get_connection_stats(self) -> Dict[str, Any]:
        """
        Get connection statistics.

        Returns:
            Dictionary with connection statistics
        """
        with self._lock:
            lobby_counts: Dict[str, int] = {}
            for info in self.connections.values():
                if info.lobby_code:
                    lobby_counts[info.lobby_code] = lobby_counts.get(info.lobby_code, 0) + 1

            return {
                'total_connections': len(self.connections),
                'connections_in_lobbies': sum(lobby_counts.values()),
                'lobby_distribution': lobby_counts
            }
