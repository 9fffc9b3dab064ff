"""
Broadcast layer for Party Arcade.

Thin wrapper over Flask-SocketIO rooms. Each lobby is a room named by its
code; every connection also has a private room named by its id.
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class Broadcaster:
    """Fan-out of server events to lobbies and single connections."""

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def to_lobby(self, lobby_code: str, event: str, data: Any = None, skip_id: Optional[str] = None):
        """Emit to everyone in a lobby, optionally skipping one connection."""
        self.socketio.emit(event, data, to=lobby_code, skip_sid=skip_id, namespace=self.namespace)

    def to_player(self, connection_id: str, event: str, data: Any = None):
        """Emit privately to one connection."""
        self.socketio.emit(event, data, to=connection_id, namespace=self.namespace)

    def join(self, connection_id: str, lobby_code: str):
        self.socketio.server.enter_room(connection_id, lobby_code, namespace=self.namespace)
        logger.debug(f"{connection_id} joined room {lobby_code}")

    def leave(self, connection_id: str, lobby_code: str):
        self.socketio.server.leave_room(connection_id, lobby_code, namespace=self.namespace)
        logger.debug(f"{connection_id} left room {lobby_code}")
