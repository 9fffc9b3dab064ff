"""
Game Module for Party Arcade.

Contains the mini-games that run inside lobbies.
Game operations happen within lobbies but are separate from lobby management.
"""

from .models import Category, Puzzle, DeductionPhase, PuzzlePhase
from .base import GameSession
from .deduction import DeductionGame
from .puzzle import PuzzleGame
from .puzzle_corpus import PuzzleCorpus
from .turn_manager import TurnManager
from .vote_manager import VoteManager, VotingSession, VoteResults

__all__ = [
    # Data models
    'Category',
    'Puzzle',
    'DeductionPhase',
    'PuzzlePhase',
    'VotingSession',
    'VoteResults',

    # Games
    'GameSession',
    'DeductionGame',
    'PuzzleGame',

    # Helpers
    'PuzzleCorpus',
    'TurnManager',
    'VoteManager'
]
