import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List

from .errors import DuplicateCandidateError, UnknownCandidateError

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """A registered candidate. ``eliminated`` only ever goes False -> True."""

    candidate_id: str
    name: str
    eliminated: bool = False


class CandidateRegistry:
    """
    Owns the candidates of one election and their elimination status.

    Candidates are stored in an array in registration order with a separate
    id -> index lookup, so iteration order is fixed at load time and is the
    tie-break authority for every round.
    """

    def __init__(self):
        self._entries: List[Candidate] = []
        self._index: Dict[str, int] = {}

    def register(self, candidate_id: str, name: str) -> Candidate:
        """
        Add a candidate at the end of the registration order.

        Raises:
            DuplicateCandidateError: if ``candidate_id`` is already registered
        """
        if candidate_id in self._index:
            raise DuplicateCandidateError(candidate_id)

        candidate = Candidate(candidate_id=candidate_id, name=name)
        self._index[candidate_id] = len(self._entries)
        self._entries.append(candidate)
        logger.debug(f"Registered candidate {candidate_id} ({name})")
        return candidate

    def get(self, candidate_id: str) -> Candidate:
        try:
            return self._entries[self._index[candidate_id]]
        except KeyError:
            raise UnknownCandidateError(candidate_id) from None

    def eliminate(self, candidate_id: str) -> None:
        """
        Mark a candidate as eliminated.

        Raises:
            UnknownCandidateError: if ``candidate_id`` was never registered
        """
        candidate = self.get(candidate_id)
        candidate.eliminated = True
        logger.debug(f"Eliminated candidate {candidate_id} ({candidate.name})")

    def is_eliminated(self, candidate_id: str) -> bool:
        return self.get(candidate_id).eliminated

    def name_of(self, candidate_id: str) -> str:
        return self.get(candidate_id).name

    def enumerate(self) -> Iterator[Candidate]:
        """Yield every registered candidate in registration order."""
        for candidate in self._entries:
            yield candidate

    def continuing(self) -> Iterator[Candidate]:
        """Yield the non-eliminated candidates in registration order."""
        return (c for c in self._entries if not c.eliminated)

    def continuing_count(self) -> int:
        return sum(1 for _ in self.continuing())

    def __iter__(self) -> Iterator[Candidate]:
        return self.enumerate()

    def __contains__(self, candidate_id) -> bool:
        return candidate_id in self._index

    def __len__(self) -> int:
        return len(self._entries)
