import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from .errors import BallotExhaustedError, MalformedBallotError, UnknownCandidateError
from .registry import CandidateRegistry

logger = logging.getLogger(__name__)

RANKING_LENGTH = 3


class Ballot:
    """
    One voter's ranking plus a cursor at their current effective choice.

    The cursor only moves forward. It is advanced by tallying when the
    candidate under it has been eliminated and is never reset between rounds.
    """

    __slots__ = ("position", "ranking", "cursor")

    def __init__(self, position: int, ranking: Tuple[str, ...]):
        self.position = position
        self.ranking = ranking
        self.cursor = 0

    def current_choice(self) -> str:
        return self.ranking[self.cursor]

    def has_next(self) -> bool:
        return self.cursor + 1 < len(self.ranking)

    def advance(self) -> str:
        """
        Move the cursor to the next ranked candidate and return it.

        Raises:
            BallotExhaustedError: if the cursor is already on the last rank
        """
        if not self.has_next():
            raise BallotExhaustedError(self.ranking)
        self.cursor += 1
        return self.ranking[self.cursor]

    def __repr__(self):
        return f"Ballot(position={self.position}, ranking={list(self.ranking)}, cursor={self.cursor})"


class BallotStore:
    """
    Ordered collection of ballots in load order.

    If a registry is supplied, ``append`` also rejects rankings that name
    unregistered candidates.
    """

    def __init__(self, registry: Optional[CandidateRegistry] = None):
        self.registry = registry
        self._ballots: List[Ballot] = []

    def append(self, ranking: Sequence[str]) -> Ballot:
        """
        Validate a ranking and store it as a new ballot.

        Raises:
            MalformedBallotError: if the ranking does not have exactly three entries
            UnknownCandidateError: if a registry is attached and an entry is unregistered
        """
        ranking = tuple(ranking)
        if len(ranking) != RANKING_LENGTH:
            raise MalformedBallotError(ranking, RANKING_LENGTH)

        if self.registry is not None:
            for candidate_id in ranking:
                if candidate_id not in self.registry:
                    raise UnknownCandidateError(candidate_id, ranking)

        ballot = Ballot(position=len(self._ballots), ranking=ranking)
        self._ballots.append(ballot)
        return ballot

    def count(self) -> int:
        return len(self._ballots)

    def enumerate(self) -> Iterator[Ballot]:
        """Yield ballot handles in load order."""
        for ballot in self._ballots:
            yield ballot

    def rankings(self) -> List[Tuple[str, ...]]:
        """Original rankings in load order, independent of cursor state."""
        return [ballot.ranking for ballot in self._ballots]

    def __iter__(self) -> Iterator[Ballot]:
        return self.enumerate()

    def __len__(self) -> int:
        return len(self._ballots)


@dataclass
class DroppedBallot:
    """A ranking rejected at load time, with its position in the source."""

    position: int
    ranking: Tuple[str, ...]
    reason: str
