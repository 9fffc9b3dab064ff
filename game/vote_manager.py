"""
Vote Manager for the imposter game.

Collects one vote per eligible voter each round and works out who is
voted out. Knows nothing about roles or phases.
"""

import random
import logging
from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass, field
from collections import Counter

logger = logging.getLogger(__name__)


@dataclass
class VoteData:
    """Data about a single vote."""
    voter: str
    target: str
    cast_at: float


@dataclass
class VotingSession:
    """Complete voting session data."""
    votes: Dict[str, VoteData] = field(default_factory=dict)  # voter -> VoteData
    started_at: Optional[float] = None
    is_complete: bool = False


@dataclass
class VoteResults:
    """Results of a voting session."""
    vote_counts: Dict[str, int] = field(default_factory=dict)  # target -> count
    eliminated: Optional[str] = None
    tied_players: List[str] = field(default_factory=list)
    is_tie: bool = False
    total_votes: int = 0


class VoteManager:
    """
    Tallies votes and applies the tie rule.
    """

    def __init__(self, random_elimination_on_tie: bool = True):
        """
        Initialize vote manager.

        Args:
            random_elimination_on_tie: Pick one of the tied players at random
                instead of eliminating nobody
        """
        self.random_elimination_on_tie = random_elimination_on_tie
        logger.debug("Vote manager initialized")

    def start_voting_session(self, started_at: Optional[float] = None) -> VotingSession:
        return VotingSession(started_at=started_at)

    def record_vote(self, session: VotingSession, voter: str, target: str, cast_at: float = 0.0):
        """
        Record a vote; a second vote from the same voter replaces the first.

        Args:
            session: Voting session to record vote in
            voter: Player voting
            target: Player being voted for
            cast_at: Time of the vote
        """
        session.votes[voter] = VoteData(voter=voter, target=target, cast_at=cast_at)
        logger.debug(f"Recorded vote: {voter} -> {target}")

    def discard_votes_by(self, session: VotingSession, voter: str):
        session.votes.pop(voter, None)

    def has_everyone_voted(self, session: VotingSession, eligible_voters: Iterable[str]) -> bool:
        voters = list(eligible_voters)
        return bool(voters) and all(voter in session.votes for voter in voters)

    def calculate_results(self, session: VotingSession) -> VoteResults:
        """
        Calculate voting results from the session.

        A single strict maximum is eliminated. A tie eliminates a random
        tied player when enabled, otherwise nobody.

        Args:
            session: Voting session to calculate results for

        Returns:
            VoteResults object with calculated results
        """
        vote_counts = Counter()
        for vote_data in session.votes.values():
            vote_counts[vote_data.target] += 1

        session.is_complete = True

        if not vote_counts:
            return VoteResults(total_votes=0)

        max_votes = max(vote_counts.values())
        top_players = [player for player, count in vote_counts.items() if count == max_votes]

        if len(top_players) > 1:
            eliminated = random.choice(top_players) if self.random_elimination_on_tie else None
            results = VoteResults(
                vote_counts=dict(vote_counts),
                eliminated=eliminated,
                tied_players=top_players,
                is_tie=True,
                total_votes=len(session.votes)
            )
        else:
            results = VoteResults(
                vote_counts=dict(vote_counts),
                eliminated=top_players[0],
                total_votes=len(session.votes)
            )

        logger.info(f"Calculated results: {results.total_votes} votes, eliminated: {results.eliminated}, tie: {results.is_tie}")
        return results

    def rekey_player(self, session: VotingSession, old_id: str, new_id: str):
        """Move votes cast by or against a player to their new id."""
        rebuilt: Dict[str, VoteData] = {}
        for voter, vote in session.votes.items():
            if voter == old_id:
                vote.voter = new_id
                voter = new_id
            if vote.target == old_id:
                vote.target = new_id
            rebuilt[voter] = vote
        session.votes = rebuilt
