"""
Instant-runoff round computation.

A round is two steps. ``tally_round`` walks every ballot, moving its cursor
past eliminated candidates, and counts current choices. ``resolve_round``
looks at that tally and either declares a winner or eliminates the
lowest-polling candidate. Both steps scan candidates in registration order,
which makes majority and tie-break decisions deterministic.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from .ballots import BallotStore
from .config import TabulationConfig
from .errors import ElectionError
from .registry import CandidateRegistry

logger = logging.getLogger(__name__)


@dataclass
class Tally:
    """Vote counts for one round, keyed by candidate id in registry order."""

    votes: Dict[str, int] = field(default_factory=dict)
    exhausted: int = 0

    @property
    def counted(self) -> int:
        """Ballots that contributed a vote this round."""
        return sum(self.votes.values())


@dataclass(frozen=True)
class Winner:
    candidate_id: str


@dataclass(frozen=True)
class Eliminated:
    candidate_id: str


RoundOutcome = Union[Winner, Eliminated]


class Tabulator:
    """Computes and resolves single rounds of an instant-runoff count."""

    def __init__(self, config: Optional[TabulationConfig] = None):
        self.config = config or TabulationConfig()

    def tally_round(self, registry: CandidateRegistry, ballots: BallotStore) -> Tally:
        """
        Count each ballot's highest-ranked continuing candidate.

        Cursors are advanced in place and stay advanced for later rounds.
        A ballot whose every ranked candidate is eliminated is counted as
        exhausted and contributes no vote.

        Args:
            registry: Candidates with their current elimination status
            ballots: Ballot store whose cursors will be advanced

        Returns:
            Tally seeded with zero for every continuing candidate
        """
        tally = Tally(votes={c.candidate_id: 0 for c in registry.continuing()})

        for ballot in ballots.enumerate():
            choice = ballot.current_choice()
            while registry.is_eliminated(choice):
                if not ballot.has_next():
                    choice = None
                    break
                choice = ballot.advance()
                logger.debug(
                    f"Ballot {ballot.position} advanced to rank {ballot.cursor + 1} ({choice})"
                )

            if choice is None:
                tally.exhausted += 1
                continue

            tally.votes[choice] += 1

        return tally

    def majority_threshold(self, tally: Tally, total_ballots: int) -> float:
        """Votes must be strictly greater than this value to win."""
        if self.config.majority_basis == "continuing":
            return tally.counted / 2
        return total_ballots / 2

    def resolve_round(
        self, tally: Tally, registry: CandidateRegistry, total_ballots: int
    ) -> RoundOutcome:
        """
        Declare a winner or eliminate one candidate.

        The first candidate in registry order with more than half the votes
        wins. A sole continuing candidate wins outright. Otherwise the
        candidate with the fewest votes is eliminated; among tied candidates
        the earliest registered one goes.

        Raises:
            ElectionError: if the tally has no continuing candidates
        """
        if not tally.votes:
            raise ElectionError("Cannot resolve a round with no continuing candidates")

        threshold = self.majority_threshold(tally, total_ballots)
        for candidate_id, votes in tally.votes.items():
            if votes > threshold:
                logger.info(
                    f"Candidate {candidate_id} has a majority: {votes} > {threshold:g}"
                )
                return Winner(candidate_id)

        if len(tally.votes) == 1:
            (candidate_id,) = tally.votes
            logger.info(f"Candidate {candidate_id} is the only candidate remaining")
            return Winner(candidate_id)

        loser = None
        for candidate_id, votes in tally.votes.items():
            # strict comparison keeps the earliest registered on ties
            if loser is None or votes < tally.votes[loser]:
                loser = candidate_id

        registry.eliminate(loser)
        logger.info(f"Eliminating candidate {loser} with {tally.votes[loser]} votes")
        return Eliminated(loser)
