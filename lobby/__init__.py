"""
Lobby Module for Party Arcade.

Contains all lobby management logic and components.
Handles lobby lifecycle, player sessions, and connection tracking.
"""

from .models import LobbyData, PlayerData, PlayerBoardState, LobbyListItem
from .manager import LobbyManager
from .broadcaster import Broadcaster
from .connection_manager import ConnectionManager, ConnectionInfo
from .session_store import SessionStore, PlayerSession, PlayerSnapshot, DisconnectRecord

__all__ = [
    # Data models
    'LobbyData',
    'PlayerData',
    'PlayerBoardState',
    'LobbyListItem',
    'ConnectionInfo',
    'PlayerSession',
    'PlayerSnapshot',
    'DisconnectRecord',

    # Managers
    'LobbyManager',
    'Broadcaster',
    'ConnectionManager',
    'SessionStore'
]
