"""
Data models for game management.

These represent game-specific data structures that operate within lobbies.
"""

from dataclasses import dataclass
from typing import List, Optional, Dict, Any
from enum import Enum


class DeductionPhase(str, Enum):
    """Phases of the imposter game."""
    STARTING = "starting"
    TURN = "turn"
    VOTING = "voting"
    ROUND_END = "roundEnd"
    GAME_END = "gameEnd"


class PuzzlePhase(str, Enum):
    """Phases of the connections game."""
    STARTING = "starting"
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


@dataclass
class Category:
    """One group of four related words."""
    name: str
    difficulty: int
    words: List[str]

    def matches(self, words: List[str]) -> bool:
        """True if every word of this category is in the given words."""
        submitted = set(words)
        return all(word in submitted for word in self.words)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'difficulty': self.difficulty,
            'words': list(self.words)
        }


@dataclass
class Puzzle:
    """A single puzzle from the archive."""
    categories: List[Category]
    id: Optional[str] = None


@dataclass
class RevealedHint:
    """A category name revealed to the lobby."""
    category_name: str
    used_by: str

    def to_dict(self) -> Dict[str, Any]:
        return {'categoryName': self.category_name, 'usedBy': self.used_by}

