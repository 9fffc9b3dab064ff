"""
Imposter game: a turn-based social deduction game.

Innocents know a secret word and each says one related word per turn.
Imposters do not know the word (or only a similar hint word) and try to
blend in. After every round all active players vote to eliminate one
suspect. Innocents win by eliminating every imposter; imposters win once
they are at least as many as the innocents.
"""

import random
import logging
from typing import Any, Dict, List, Optional, Set

from utils.constants import IMPOSTER_CONFIG, GAME_TYPES, ROLES, WINNER_TYPES, WORD_PAIRS
from utils.helpers import clamp_coordinate, coerce_bool, coerce_int
from .base import GameSession
from .models import DeductionPhase
from .turn_manager import TurnManager
from .vote_manager import VoteManager, VotingSession

logger = logging.getLogger(__name__)


class DeductionGame(GameSession):
    """
    One running imposter game.

    Players are tracked by connection id. Roles are assigned once at start;
    players who leave are kept in ``departed`` so end-of-game reveals still
    list them.
    """

    game_type = GAME_TYPES['IMPOSTER']
    ACTIONS = {
        'submit_word': 'submit_word',
        'cast_vote': 'cast_vote',
        'imposter_cursor_move': 'move_cursor'
    }

    def __init__(self, lobby, broadcaster, scheduler, on_end):
        super().__init__(lobby, broadcaster, scheduler, on_end)

        self.imposter_count = coerce_int(self.settings.get('imposterCount'),
                                         IMPOSTER_CONFIG['DEFAULT_IMPOSTER_COUNT'], minimum=1)
        self.turn_time = coerce_int(self.settings.get('turnTimeLimit'),
                                    IMPOSTER_CONFIG['DEFAULT_TURN_TIME'], minimum=1)
        self.voting_time = coerce_int(self.settings.get('votingTimeLimit'),
                                      IMPOSTER_CONFIG['DEFAULT_VOTING_TIME'], minimum=1)
        self.max_rounds = coerce_int(self.settings.get('maxRounds'),
                                     IMPOSTER_CONFIG['DEFAULT_MAX_ROUNDS'], minimum=1)
        self.give_hint_word = coerce_bool(self.settings.get('giveHintWord'), False)
        self.random_elimination_on_tie = coerce_bool(self.settings.get('randomEliminationOnTie'), True)
        winner = self.settings.get('winnerOnMaxRounds')
        self.winner_on_max_rounds = winner if winner in WINNER_TYPES.values() \
            else IMPOSTER_CONFIG['DEFAULT_WINNER_ON_MAX_ROUNDS']

        self.phase = DeductionPhase.STARTING
        self.target_word = ''
        self.hint_word = ''
        self.roles: Dict[str, str] = {}
        self.player_names: Dict[str, str] = {}
        self.eliminated: Set[str] = set()
        self.departed: Set[str] = set()
        self.current_round = 0
        self.submitted_words: Dict[str, str] = {}
        self.active_turn_player: Optional[str] = None

        self.turn_manager = TurnManager()
        self.vote_manager = VoteManager(random_elimination_on_tie=self.random_elimination_on_tie)
        self.voting: VotingSession = self.vote_manager.start_voting_session()

        self.turn_timer = None
        self.voting_timer = None

    # Roster views

    def is_active(self, player_id: Optional[str]) -> bool:
        """Has a role, is still in the lobby, and was not voted out."""
        return (player_id in self.roles
                and player_id not in self.eliminated
                and player_id not in self.departed
                and player_id in self.lobby.players)

    def active_players(self) -> List[str]:
        return [pid for pid in self.lobby.players if self.is_active(pid)]

    def active_imposters(self) -> List[str]:
        return [pid for pid in self.active_players() if self.roles[pid] == ROLES['IMPOSTER']]

    def active_innocents(self) -> List[str]:
        return [pid for pid in self.active_players() if self.roles[pid] == ROLES['INNOCENT']]

    def name_of(self, player_id: str) -> str:
        player = self.lobby.players.get(player_id)
        if player:
            return player.name
        return self.player_names.get(player_id, 'Unknown')

    @property
    def is_finished(self) -> bool:
        return self.phase == DeductionPhase.GAME_END

    # Lifecycle

    def start(self):
        participants = [pid for pid, player in self.lobby.players.items() if not player.is_spectator]
        self.player_names = {pid: player.name for pid, player in self.lobby.players.items()}

        count = max(0, min(self.imposter_count, len(participants)))
        imposters = set(random.sample(participants, count))
        self.roles = {
            pid: ROLES['IMPOSTER'] if pid in imposters else ROLES['INNOCENT']
            for pid in participants
        }
        self.imposter_count = count
        self.target_word, self.hint_word = random.choice(WORD_PAIRS)

        for pid, player in self.lobby.players.items():
            self.emit_to(pid, 'game_start', self._role_payload(pid))

        logger.info(f"Imposter game started in lobby {self.lobby_code}: "
                    f"{len(participants)} players, {count} imposters")
        self.schedule(IMPOSTER_CONFIG['ROLE_REVEAL_DELAY'], self.start_round)

    def _role_payload(self, player_id: str) -> Dict[str, Any]:
        role = self.roles.get(player_id)
        if role == ROLES['INNOCENT']:
            word = self.target_word
        elif role == ROLES['IMPOSTER']:
            word = self.hint_word if self.give_hint_word else None
        else:
            role = ROLES['SPECTATOR']
            word = None
        return {'role': role, 'word': word, 'imposterCount': self.imposter_count}

    def start_round(self):
        if self.is_finished:
            return
        self.current_round += 1
        self.submitted_words = {}
        self.voting = self.vote_manager.start_voting_session()
        self.active_turn_player = None
        self.phase = DeductionPhase.TURN
        self.turn_manager.start_round(self.active_players())

        self.emit('round_start', {'round': self.current_round, 'totalRounds': self.max_rounds})
        self.schedule(IMPOSTER_CONFIG['ROUND_INTRO_DELAY'], self.start_next_turn)

    def start_next_turn(self):
        if self.phase != DeductionPhase.TURN:
            return
        player_id = self.turn_manager.current_player()
        if player_id is None:
            self.start_voting()
            return

        self.active_turn_player = player_id
        self.emit('turn_start', {
            'playerId': player_id,
            'playerName': self.name_of(player_id),
            'timeLimit': self.turn_time
        })
        self.turn_timer = self.schedule(self.turn_time, self._on_turn_timeout)

    def _on_turn_timeout(self):
        if self.phase != DeductionPhase.TURN or self.active_turn_player is None:
            return
        player_id = self.active_turn_player
        logger.debug(f"Turn timed out for {player_id} in lobby {self.lobby_code}")
        self.submitted_words[player_id] = IMPOSTER_CONFIG['NO_WORD']
        self.active_turn_player = None
        self.turn_timer = None
        self.turn_manager.advance()
        self.start_next_turn()

    def submit_word(self, player_id: str, data: Dict[str, Any]) -> bool:
        word = data.get('word')
        if self.phase != DeductionPhase.TURN or player_id != self.active_turn_player:
            logger.debug(f"Ignoring word from {player_id}: not their turn")
            return False
        if not isinstance(word, str) or not word.strip():
            return False
        word = word.strip()[:IMPOSTER_CONFIG['MAX_WORD_LENGTH']]

        self.cancel(self.turn_timer)
        self.turn_timer = None
        self.active_turn_player = None
        self.submitted_words[player_id] = word
        self.emit('word_submitted', {'playerId': player_id, 'word': word})

        self.turn_manager.advance()
        self.schedule(IMPOSTER_CONFIG['WORD_SUBMIT_DELAY'], self.start_next_turn)
        return True

    def start_voting(self):
        self.phase = DeductionPhase.VOTING
        self.active_turn_player = None
        self.voting = self.vote_manager.start_voting_session(self.scheduler.now())

        self.emit('voting_start', {
            'words': self._words_payload(),
            'timeLimit': self.voting_time
        })
        self.voting_timer = self.schedule(self.voting_time, self.end_voting)

    def _words_payload(self) -> List[Dict[str, str]]:
        return [
            {'playerId': pid, 'playerName': self.name_of(pid), 'word': word}
            for pid, word in self.submitted_words.items()
        ]

    def cast_vote(self, player_id: str, data: Dict[str, Any]) -> bool:
        target_id = data.get('targetId')
        if self.phase != DeductionPhase.VOTING:
            return False
        if not self.is_active(player_id) or not self.is_active(target_id):
            logger.debug(f"Ignoring vote {player_id} -> {target_id} in lobby {self.lobby_code}")
            return False

        self.vote_manager.record_vote(self.voting, player_id, target_id, self.scheduler.now())
        if self.vote_manager.has_everyone_voted(self.voting, self.active_players()):
            self.cancel(self.voting_timer)
            self.voting_timer = None
            self.end_voting()
        return True

    def end_voting(self):
        if self.phase != DeductionPhase.VOTING:
            return
        self.phase = DeductionPhase.ROUND_END
        self.voting_timer = None

        results = self.vote_manager.calculate_results(self.voting)
        eliminated = None
        if results.eliminated:
            self.eliminated.add(results.eliminated)
            eliminated = {
                'playerId': results.eliminated,
                'playerName': self.name_of(results.eliminated),
                'wasImposter': self.roles.get(results.eliminated) == ROLES['IMPOSTER']
            }
            logger.info(f"Lobby {self.lobby_code} eliminated {results.eliminated}")

        self.emit('voting_result', {
            'votes': [
                {'playerId': pid, 'playerName': self.name_of(pid), 'votes': count}
                for pid, count in results.vote_counts.items()
            ],
            'eliminated': eliminated
        })
        self.schedule(IMPOSTER_CONFIG['RESULT_DELAY'], self.check_win_condition)

    def check_win_condition(self):
        if self.phase != DeductionPhase.ROUND_END:
            return
        imposters = len(self.active_imposters())
        innocents = len(self.active_innocents())

        if imposters == 0:
            self.end_game(WINNER_TYPES['INNOCENTS'])
        elif imposters >= innocents:
            self.end_game(WINNER_TYPES['IMPOSTERS'])
        elif self.current_round >= self.max_rounds:
            self.end_game(self.winner_on_max_rounds)
        else:
            self.start_round()

    def end_game(self, winner: str):
        self.phase = DeductionPhase.GAME_END
        self.cancel(self.turn_timer)
        self.cancel(self.voting_timer)

        def reveal(role: str) -> List[Dict[str, str]]:
            return [
                {'playerId': pid, 'playerName': self.name_of(pid)}
                for pid, assigned in self.roles.items() if assigned == role
            ]

        self.emit('game_end', {
            'winner': winner,
            'targetWord': self.target_word,
            'imposters': reveal(ROLES['IMPOSTER']),
            'innocents': reveal(ROLES['INNOCENT'])
        })
        logger.info(f"Imposter game in lobby {self.lobby_code} ended, winner: {winner}")
        self.finish()

    # Board

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

    # Roster changes

    def state_sync_payload(self) -> Dict[str, Any]:
        current = self.active_turn_player
        return {
            'phase': self.phase.value,
            'round': self.current_round,
            'totalRounds': self.max_rounds,
            'currentPlayerId': current,
            'currentPlayerName': self.name_of(current) if current else None,
            'words': self._words_payload(),
            'eliminated': list(self.eliminated)
        }

    def add_player(self, player_id: str):
        player = self.lobby.players.get(player_id)
        if player:
            self.player_names[player_id] = player.name
        self.emit_to(player_id, 'game_start', self._role_payload(player_id))
        self.emit_to(player_id, 'game_state_sync', self.state_sync_payload())

    def remove_player(self, player_id: str):
        if player_id in self.roles:
            self.player_names[player_id] = self.name_of(player_id)
            self.departed.add(player_id)
        self.vote_manager.discard_votes_by(self.voting, player_id)
        self.emit('cursor_remove', {'playerId': player_id}, skip_id=player_id)

    def on_disconnect(self, player_id: str):
        self.emit('cursor_remove', {'playerId': player_id}, skip_id=player_id)

    def on_reconnect(self, old_id: str, new_id: str):
        if old_id in self.roles:
            self.roles = {new_id if pid == old_id else pid: role for pid, role in self.roles.items()}
        if old_id in self.player_names:
            self.player_names[new_id] = self.player_names.pop(old_id)
        if old_id in self.eliminated:
            self.eliminated.discard(old_id)
            self.eliminated.add(new_id)
        self.submitted_words = {
            new_id if pid == old_id else pid: word for pid, word in self.submitted_words.items()
        }
        self.turn_manager.rekey_player(old_id, new_id)
        self.vote_manager.rekey_player(self.voting, old_id, new_id)
        if self.active_turn_player == old_id:
            self.active_turn_player = new_id

        self.emit('cursor_remove', {'playerId': old_id}, skip_id=new_id)
        self.emit_to(new_id, 'game_start', self._role_payload(new_id))
        self.emit_to(new_id, 'game_state_sync', self.state_sync_payload())
        logger.info(f"Restored {new_id} (was {old_id}) in imposter game {self.lobby_code}")
