"""
Helper utilities for Party Arcade.

This module contains utility functions used throughout the application
for validation, generation, and data manipulation.
"""

import random
import re
from typing import Any, Iterable, Optional

from .constants import LOBBY_CONFIG, PLAYER_COLORS


def generate_lobby_code(length: int = LOBBY_CONFIG['CODE_LENGTH'],
                        existing_codes: Optional[Iterable[str]] = None) -> str:
    """
    Generate a random lobby code that does not collide with existing ones.

    Codes use an alphabet without look-alike characters (no I, O, 0 or 1).

    Args:
        length: Number of characters in the code
        existing_codes: Codes already in use

    Returns:
        A fresh lobby code
    """
    taken = set(existing_codes or [])
    alphabet = LOBBY_CONFIG['CODE_ALPHABET']
    while True:
        code = ''.join(random.choices(alphabet, k=length))
        if code not in taken:
            return code


def normalize_lobby_code(code: Any) -> str:
    """Upper-case and strip a client supplied lobby code."""
    if not isinstance(code, str):
        return ''
    return code.strip().upper()


def normalize_player_name(name: Any) -> str:
    """
    Clean up a display name sent by a client.

    Whitespace runs are collapsed and markup is stripped. Names that end up
    empty fall back to a default, long names are cut to the maximum length.

    Args:
        name: Raw name from the client payload

    Returns:
        Display name safe to broadcast
    """
    if not isinstance(name, str):
        return LOBBY_CONFIG['DEFAULT_PLAYER_NAME']

    name = re.sub(r'<[^>]*>', '', name)
    name = re.sub(r'\s+', ' ', name.strip())
    if not name:
        return LOBBY_CONFIG['DEFAULT_PLAYER_NAME']
    return name[:LOBBY_CONFIG['MAX_NAME_LENGTH']]


def random_player_color() -> str:
    """Pick a palette color for a joining player."""
    return random.choice(PLAYER_COLORS)


def clamp_coordinate(value: Any) -> float:
    """
    Clamp a cursor coordinate into the board's percentage space.

    Numeric strings are parsed; anything else that is not a number
    (including booleans and NaN) is treated as 0.
    """
    if isinstance(value, bool):
        return float(LOBBY_CONFIG['CURSOR_MIN'])
    try:
        value = float(value)
    except (TypeError, ValueError, OverflowError):
        return float(LOBBY_CONFIG['CURSOR_MIN'])
    if value != value:
        return float(LOBBY_CONFIG['CURSOR_MIN'])
    return float(max(LOBBY_CONFIG['CURSOR_MIN'], min(LOBBY_CONFIG['CURSOR_MAX'], value)))


def coerce_int(value: Any, default: int, minimum: Optional[int] = None) -> int:
    """
    Read an integer game setting, falling back to a default.

    Args:
        value: Raw setting value
        default: Value used when the raw value is missing or not a number
        minimum: Optional lower bound

    Returns:
        The integer setting
    """
    if isinstance(value, bool) or value is None:
        result = default
    else:
        try:
            result = int(value)
        except (TypeError, ValueError):
            result = default
    if minimum is not None and result < minimum:
        result = minimum
    return result


def coerce_bool(value: Any, default: bool) -> bool:
    """Read a boolean game setting; only an explicit bool overrides the default."""
    if isinstance(value, bool):
        return value
    return default

