"""
Turn Manager for the imposter game.

Handles turn order and turn progression within a round.
Contains no timer or broadcast logic - purely turn bookkeeping.
"""

import random
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class TurnManager:
    """
    Keeps the speaking order for one round at a time.

    Each round gets a freshly shuffled order; advancing past the last
    player leaves ``current_player`` as None, which ends the round.
    """

    def __init__(self):
        self.turn_order: List[str] = []
        self.current_index = 0
        self.round_number = 0

    def start_round(self, player_ids: List[str]) -> List[str]:
        """
        Begin a new round with a random order of the given players.

        Args:
            player_ids: Players who speak this round

        Returns:
            The new turn order
        """
        self.turn_order = self._create_turn_order(player_ids)
        self.current_index = 0
        self.round_number += 1
        logger.debug(f"Round {self.round_number} turn order: {self.turn_order}")
        return self.turn_order

    def _create_turn_order(self, players: List[str]) -> List[str]:
        order = list(players)
        random.shuffle(order)
        return order

    def current_player(self) -> Optional[str]:
        if self.current_index < len(self.turn_order):
            return self.turn_order[self.current_index]
        return None

    def advance(self) -> Optional[str]:
        """
        Move to the next player.

        Returns:
            The new current player, or None when the round is over
        """
        self.current_index += 1
        return self.current_player()

    def rekey_player(self, old_id: str, new_id: str):
        """Replace a player's id in the turn order, keeping their slot."""
        self.turn_order = [new_id if pid == old_id else pid for pid in self.turn_order]
