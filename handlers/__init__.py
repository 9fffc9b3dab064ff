"""
Handlers Module for Party Arcade.

Contains all web layer handlers (Socket.IO and API) with no business logic.
Handlers coordinate between the web layer and the lobby manager.
"""

from .socket_handlers import register_socket_handlers
from .api_handlers import register_api_handlers

__all__ = [
    'register_socket_handlers',
    'register_api_handlers'
]
