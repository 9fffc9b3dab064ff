"""
Game constants for Party Arcade.

This module contains all constant values used throughout the server,
including game types, lobby states, player colors, word pairs, and the
timing configuration of sessions and both mini-games.
"""

# Supported game types
GAME_TYPES = {
    'IMPOSTER': 'imposter',
    'CONNECTIONS': 'connections'
}

# Lobby state constants
LOBBY_STATES = {
    'SELECTING': 'selecting',  # No game type chosen yet
    'WAITING': 'waiting',      # Game type chosen, host may start
    'PLAYING': 'playing'       # Game session running
}

# Player palette; the lobby creator always gets the first entry
PLAYER_COLORS = [
    '#f59e0b', '#10b981', '#3b82f6', '#8b5cf6',
    '#ef4444', '#ec4899', '#14b8a6', '#f97316'
]

HOST_COLOR = PLAYER_COLORS[0]

# (target word, hint word) pairs for the deduction game
WORD_PAIRS = [
    ('PIZZA', 'PASTA'),
    ('BASKETBALL', 'FOOTBALL'),
    ('GUITAR', 'PIANO'),
    ('SUMMER', 'WINTER'),
    ('OCEAN', 'LAKE')
]

# Session and reconnection timing (seconds)
SESSION_CONFIG = {
    'SESSION_TIMEOUT': 30 * 60,
    'CLEANUP_INTERVAL': 5 * 60,
    'RECONNECT_GRACE_PERIOD': 2 * 60,
    'HOST_RESTORE_WINDOW': 2 * 60
}

# Lobby configuration
LOBBY_CONFIG = {
    'CODE_LENGTH': 6,
    'CODE_ALPHABET': 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789',
    'MAX_NAME_LENGTH': 20,
    'DEFAULT_PLAYER_NAME': 'Player',
    'GAME_START_DELAY': 0.1,
    'GAME_END_DELAY': 5,
    'CURSOR_MIN': 0,
    'CURSOR_MAX': 100
}

# Deduction game defaults and pacing
IMPOSTER_CONFIG = {
    'DEFAULT_IMPOSTER_COUNT': 1,
    'DEFAULT_TURN_TIME': 30,
    'DEFAULT_VOTING_TIME': 30,
    'DEFAULT_MAX_ROUNDS': 5,
    'DEFAULT_WINNER_ON_MAX_ROUNDS': 'innocents',
    'ROLE_REVEAL_DELAY': 2,
    'ROUND_INTRO_DELAY': 1,
    'WORD_SUBMIT_DELAY': 1.5,
    'RESULT_DELAY': 3,
    'MAX_WORD_LENGTH': 50,
    'NO_WORD': '[No word]'
}

# Collaborative puzzle defaults and scoring
CONNECTIONS_CONFIG = {
    'GROUP_SIZE': 4,
    'MAX_SELECTIONS': 4,
    'MAX_MISTAKES': 4,
    'MAX_MISTAKES_MEGA': 8,
    'MAX_HINTS': 2,
    'MAX_HINTS_MEGA': 4,
    'DEFAULT_PUZZLE_COUNT': 1,
    'DEFAULT_PUZZLE_COUNT_MEGA': 2,
    'CORRECT_POINTS': 100,
    'MISTAKE_PENALTY': 25,
    'RECONNECT_SYNC_DELAY': 0.5,
    'CURSOR_START': (50, 50)
}

# Roles in the deduction game
ROLES = {
    'IMPOSTER': 'imposter',
    'INNOCENT': 'innocent',
    'SPECTATOR': 'spectator'
}

# Winner types
WINNER_TYPES = {
    'INNOCENTS': 'innocents',
    'IMPOSTERS': 'imposters'
}
