"""
Connections game: a real-time collaborative word grouping puzzle.

Everyone in the lobby works on the same board of words. Each player has
their own cursor, selection and score; mistakes and hints are shared.
The lobby wins by finding every category before running out of mistakes.
"""

import random
import logging
from typing import Any, Dict, List, Optional

from utils.constants import CONNECTIONS_CONFIG, GAME_TYPES
from utils.helpers import clamp_coordinate, coerce_bool, coerce_int
from .base import GameSession
from .models import Category, PuzzlePhase, RevealedHint
from .puzzle_corpus import PuzzleCorpus, build_board

logger = logging.getLogger(__name__)


class PuzzleGame(GameSession):
    """One running connections game."""

    game_type = GAME_TYPES['CONNECTIONS']
    ACTIONS = {
        'cursor_move': 'move_cursor',
        'select_word': 'select_word',
        'submit_group': 'submit_group',
        'use_hint': 'use_hint',
        'shuffle_words': 'shuffle_words'
    }

    def __init__(self, lobby, broadcaster, scheduler, on_end, corpus: PuzzleCorpus):
        super().__init__(lobby, broadcaster, scheduler, on_end)
        self.corpus = corpus

        self.is_mega_mode = coerce_bool(self.settings.get('megaMode'), False)
        default_count = CONNECTIONS_CONFIG['DEFAULT_PUZZLE_COUNT_MEGA'] if self.is_mega_mode \
            else CONNECTIONS_CONFIG['DEFAULT_PUZZLE_COUNT']
        self.puzzle_count = coerce_int(self.settings.get('puzzleCount'), default_count, minimum=1)
        self.max_mistakes = CONNECTIONS_CONFIG['MAX_MISTAKES_MEGA'] if self.is_mega_mode \
            else CONNECTIONS_CONFIG['MAX_MISTAKES']
        self.max_hints = CONNECTIONS_CONFIG['MAX_HINTS_MEGA'] if self.is_mega_mode \
            else CONNECTIONS_CONFIG['MAX_HINTS']

        self.phase = PuzzlePhase.STARTING
        self.categories: List[Category] = []
        self.words: List[str] = []
        self.solved: List[str] = []
        self.mistake_count = 0
        self.hints_used = 0
        self.revealed_hints: List[RevealedHint] = []

    @property
    def is_finished(self) -> bool:
        return self.phase in (PuzzlePhase.WON, PuzzlePhase.LOST)

    @property
    def is_playing(self) -> bool:
        return self.phase == PuzzlePhase.PLAYING

    def start(self):
        puzzles = self.corpus.random_puzzles(self.puzzle_count)
        self.categories, self.words = build_board(puzzles, self.is_mega_mode)

        for player in self.lobby.players.values():
            player.board.reset()
            player.board.cursor = CONNECTIONS_CONFIG['CURSOR_START']

        self.phase = PuzzlePhase.PLAYING
        self.emit('connections_start', self._start_payload())
        logger.info(f"Connections game started in lobby {self.lobby_code}: "
                    f"{len(self.categories)} categories, mega={self.is_mega_mode}")

    def _start_payload(self) -> Dict[str, Any]:
        return {
            'words': list(self.words),
            'maxMistakes': self.max_mistakes,
            'maxHints': self.max_hints,
            'isMegaMode': self.is_mega_mode,
            'players': [
                {'playerId': pid, 'playerName': player.name, 'color': player.color}
                for pid, player in self.lobby.players.items()
            ]
        }

    def _scores_payload(self) -> Dict[str, Any]:
        return {'scores': {pid: player.board.score for pid, player in self.lobby.players.items()}}

    # Actions

    def move_cursor(self, player_id: str, data: Dict[str, Any]) -> bool:
        player = self.lobby.players.get(player_id)
        if not player:
            return False
        x, y = clamp_coordinate(data.get('x')), clamp_coordinate(data.get('y'))
        player.board.cursor = (x, y)
        self.emit('cursor_update', {
            'playerId': player_id,
            'playerName': player.name,
            'x': x,
            'y': y
        }, skip_id=player_id)
        return True

    def select_word(self, player_id: str, data: Dict[str, Any]) -> bool:
        player = self.lobby.players.get(player_id)
        word = data.get('word')
        if not player or not isinstance(word, str):
            return False

        selections = player.board.selections
        if word in selections:
            selections.remove(word)
        elif word not in self.words:
            return False
        elif len(selections) >= CONNECTIONS_CONFIG['MAX_SELECTIONS']:
            return False
        else:
            selections.append(word)

        self.emit('selection_update', {'playerId': player_id, 'selections': list(selections)})
        return True

    def submit_group(self, player_id: str, data: Dict[str, Any]) -> bool:
        player = self.lobby.players.get(player_id)
        words = data.get('words')
        if not self.is_playing or not player:
            return False
        if not isinstance(words, list) or len(words) != CONNECTIONS_CONFIG['GROUP_SIZE']:
            return False

        category = self._find_match(words)
        if category:
            self._solve(player_id, category)
        else:
            self._record_mistake(player_id)
        return True

    def _find_match(self, words: List[str]) -> Optional[Category]:
        for category in self.categories:
            if category.name not in self.solved and category.matches(words):
                return category
        return None

    def _solve(self, player_id: str, category: Category):
        player = self.lobby.players[player_id]
        self.solved.append(category.name)
        player.board.score += CONNECTIONS_CONFIG['CORRECT_POINTS']
        player.board.selections = []

        solved_words = set(category.words)
        self.words = [word for word in self.words if word not in solved_words]
        for pid, other in self.lobby.players.items():
            if pid != player_id and solved_words.intersection(other.board.selections):
                other.board.selections = [w for w in other.board.selections if w not in solved_words]
                self.emit('selection_update', {'playerId': pid, 'selections': list(other.board.selections)})

        self.emit('category_solved', {
            'category': category.to_dict(),
            'solvedBy': player.name,
            'playerId': player_id
        })
        self.emit('score_update', self._scores_payload())
        logger.info(f"Lobby {self.lobby_code}: {player.name} solved {category.name!r}")

        if len(self.solved) == len(self.categories):
            self.end_game(won=True)

    def _record_mistake(self, player_id: str):
        player = self.lobby.players[player_id]
        player.board.score = max(0, player.board.score - CONNECTIONS_CONFIG['MISTAKE_PENALTY'])
        self.mistake_count += 1

        self.emit('mistake_made', {
            'playerId': player_id,
            'playerName': player.name,
            'mistakeCount': self.mistake_count,
            'maxMistakes': self.max_mistakes
        })
        self.emit('score_update', self._scores_payload())

        if self.mistake_count >= self.max_mistakes:
            self.end_game(won=False)

    def use_hint(self, player_id: str, data: Dict[str, Any]) -> bool:
        if not self.is_playing or self.hints_used >= self.max_hints:
            return False
        hinted = {hint.category_name for hint in self.revealed_hints}
        candidates = [
            category for category in self.categories
            if category.name not in self.solved and category.name not in hinted
        ]
        if not candidates:
            return False

        category = random.choice(candidates)
        hint = RevealedHint(category_name=category.name, used_by=self.player_name(player_id))
        self.hints_used += 1
        self.revealed_hints.append(hint)

        self.emit('hint_revealed', {
            'categoryName': hint.category_name,
            'hintsUsed': self.hints_used,
            'maxHints': self.max_hints,
            'usedBy': hint.used_by
        })
        return True

    def shuffle_words(self, player_id: str, data: Dict[str, Any]) -> bool:
        if not self.is_playing:
            return False
        random.shuffle(self.words)
        self.emit('words_shuffled', {'words': list(self.words)})
        return True

    def end_game(self, won: bool):
        self.phase = PuzzlePhase.WON if won else PuzzlePhase.LOST
        leaderboard = sorted(
            (
                {'playerId': pid, 'playerName': player.name, 'score': player.board.score}
                for pid, player in self.lobby.players.items()
            ),
            key=lambda entry: entry['score'],
            reverse=True
        )
        self.emit('connections_end', {
            'won': won,
            'categories': [category.to_dict() for category in self.categories],
            'solvedCategories': list(self.solved),
            'leaderboard': leaderboard
        })
        logger.info(f"Connections game in lobby {self.lobby_code} {'won' if won else 'lost'}")
        self.finish()

    # Roster changes

    def send_state(self, player_id: str):
        """Privately replay the current board to one player."""
        if player_id not in self.lobby.players or self.is_finished:
            return
        self.emit_to(player_id, 'connections_start', self._start_payload())
        for name in self.solved:
            category = next(c for c in self.categories if c.name == name)
            self.emit_to(player_id, 'category_solved', {
                'category': category.to_dict(),
                'solvedBy': 'Previous players',
                'playerId': 'system'
            })
        self.emit_to(player_id, 'sync_hints', {
            'hints': [hint.to_dict() for hint in self.revealed_hints],
            'hintsUsed': self.hints_used,
            'maxHints': self.max_hints
        })
        if self.mistake_count:
            self.emit_to(player_id, 'mistake_made', {
                'playerId': None,
                'playerName': None,
                'mistakeCount': self.mistake_count,
                'maxMistakes': self.max_mistakes
            })
        self.emit_to(player_id, 'score_update', self._scores_payload())

    def add_player(self, player_id: str):
        player = self.lobby.players.get(player_id)
        if not player:
            return
        player.board.reset()
        player.board.cursor = CONNECTIONS_CONFIG['CURSOR_START']
        self.send_state(player_id)

    def remove_player(self, player_id: str):
        player = self.lobby.players.get(player_id)
        if player:
            player.board.cursor = None
            player.board.selections = []
        self.emit('cursor_remove', {'playerId': player_id}, skip_id=player_id)
        self.emit('selection_update', {'playerId': player_id, 'selections': []}, skip_id=player_id)

    def on_disconnect(self, player_id: str):
        player = self.lobby.players.get(player_id)
        if player:
            player.board.cursor = None
        self.emit('cursor_remove', {'playerId': player_id}, skip_id=player_id)

    def on_reconnect(self, old_id: str, new_id: str):
        player = self.lobby.players.get(new_id)
        if not player:
            return
        self.emit('cursor_remove', {'playerId': old_id}, skip_id=new_id)
        self.emit('selection_update', {'playerId': old_id, 'selections': []}, skip_id=new_id)
        self.emit('selection_update', {'playerId': new_id, 'selections': list(player.board.selections)})
        self.schedule(CONNECTIONS_CONFIG['RECONNECT_SYNC_DELAY'], self.send_state, new_id)
        logger.info(f"Restored {new_id} (was {old_id}) in connections game {self.lobby_code}")
