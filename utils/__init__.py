"""
Utilities module for Party Arcade.

This module contains constants, helper functions, and the timer
abstraction used throughout the application.
"""

from .constants import GAME_TYPES, LOBBY_STATES, PLAYER_COLORS, WORD_PAIRS
from .helpers import generate_lobby_code, normalize_player_name, clamp_coordinate
from .timers import Scheduler, SocketIOScheduler, TimerHandle

__all__ = [
    'GAME_TYPES',
    'LOBBY_STATES',
    'PLAYER_COLORS',
    'WORD_PAIRS',
    'generate_lobby_code',
    'normalize_player_name',
    'clamp_coordinate',
    'Scheduler',
    'SocketIOScheduler',
    'TimerHandle'
]
