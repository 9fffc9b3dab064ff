"""
Puzzle corpus for the connections game.

Loads the puzzle archive once at startup and builds game boards from it,
including the merged board used by mega mode.
"""

import json
import logging
import random
from typing import Any, Dict, List, Tuple

from utils.constants import CONNECTIONS_CONFIG
from .models import Category, Puzzle

logger = logging.getLogger(__name__)


class PuzzleCorpus:
    """Read-only collection of puzzles."""

    def __init__(self, puzzles: List[Puzzle]):
        if not puzzles:
            raise ValueError("Puzzle corpus is empty")
        self.puzzles = puzzles

    def __len__(self) -> int:
        return len(self.puzzles)

    @classmethod
    def from_records(cls, records: List[Dict[str, Any]]) -> 'PuzzleCorpus':
        """
        Build a corpus from decoded JSON records.

        Records whose categories are malformed are skipped with a warning.

        Args:
            records: List of ``{id?, categories: [{name, difficulty, words}]}``

        Returns:
            PuzzleCorpus with every valid record
        """
        puzzles = []
        for index, record in enumerate(records):
            try:
                puzzles.append(_parse_puzzle(record, index))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed puzzle #{index}: {e}")
        return cls(puzzles)

    @classmethod
    def from_file(cls, path: str) -> 'PuzzleCorpus':
        with open(path, encoding='utf-8') as f:
            records = json.load(f)
        corpus = cls.from_records(records)
        logger.info(f"Loaded {len(corpus)} puzzles from {path}")
        return corpus

    def random_puzzles(self, count: int) -> List[Puzzle]:
        """Pick up to ``count`` distinct puzzles at random."""
        count = max(1, min(count, len(self.puzzles)))
        return random.sample(self.puzzles, count)


def _parse_puzzle(record: Dict[str, Any], index: int) -> Puzzle:
    group_size = CONNECTIONS_CONFIG['GROUP_SIZE']
    categories = []
    for raw in record['categories']:
        words = [str(word) for word in raw['words']]
        if len(words) != group_size:
            raise ValueError(f"category {raw.get('name')!r} has {len(words)} words")
        categories.append(Category(
            name=str(raw['name']),
            difficulty=int(raw.get('difficulty', 0)),
            words=words
        ))
    if not categories:
        raise ValueError("puzzle has no categories")
    return Puzzle(categories=categories, id=str(record.get('id', index)))


def merge_categories(puzzles: List[Puzzle]) -> List[Category]:
    """
    Combine the categories of several puzzles into one board.

    A category is dropped whole if any of its words already belongs to a
    category that was kept, so every word on the board is unique.
    """
    kept: List[Category] = []
    claimed = set()
    for puzzle in puzzles:
        for category in puzzle.categories:
            if any(word in claimed for word in category.words):
                logger.debug(f"Dropping category {category.name!r}: duplicate word")
                continue
            kept.append(category)
            claimed.update(category.words)
    return kept


def build_board(puzzles: List[Puzzle], mega_mode: bool) -> Tuple[List[Category], List[str]]:
    """
    Build the categories and shuffled word list for a game.

    Args:
        puzzles: Puzzles picked for this game
        mega_mode: Merge every picked puzzle instead of using the first

    Returns:
        Tuple of (categories, shuffled words)
    """
    if mega_mode and len(puzzles) > 1:
        categories = merge_categories(puzzles)
    else:
        categories = list(puzzles[0].categories)

    words = [word for category in categories for word in category.words]
    random.shuffle(words)
    return categories, words
