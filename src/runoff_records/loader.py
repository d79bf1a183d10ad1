import logging
from dataclasses import dataclass, field
from typing import Dict, List

try:
    from ..runoff.ballots import RANKING_LENGTH, BallotStore, DroppedBallot
    from ..runoff.errors import MalformedBallotError, UnknownCandidateError
    from ..runoff.registry import CandidateRegistry
except ImportError:
    from runoff.ballots import RANKING_LENGTH, BallotStore, DroppedBallot
    from runoff.errors import MalformedBallotError, UnknownCandidateError
    from runoff.registry import CandidateRegistry

from .sources import BallotSource, CandidateSource, InvalidRanking

logger = logging.getLogger(__name__)


@dataclass
class LoadedElection:
    """Registry and ballot store built from a pair of sources."""

    registry: CandidateRegistry
    ballots: BallotStore
    dropped_ballots: List[DroppedBallot] = field(default_factory=list)

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "total_candidates": len(self.registry),
            "total_ballots": self.ballots.count() + len(self.dropped_ballots),
            "valid_ballots": self.ballots.count(),
            "dropped_ballots": len(self.dropped_ballots),
        }


class ElectionLoader:
    """
    Reads candidates and ballots into the in-memory election model.

    Source failures and duplicate candidate ids abort the load. A ballot
    that is malformed or names an unregistered candidate is dropped and
    recorded; the rest of the ballots still load.
    """

    def __init__(self, candidate_source: CandidateSource, ballot_source: BallotSource):
        """
        Initialize loader.

        Args:
            candidate_source: Yields (candidate_id, name) pairs
            ballot_source: Yields rankings in preference order
        """
        self.candidate_source = candidate_source
        self.ballot_source = ballot_source

    def load_candidates(self) -> CandidateRegistry:
        registry = CandidateRegistry()
        for candidate_id, name in self.candidate_source:
            registry.register(candidate_id, name)

        logger.info(f"Loaded {len(registry)} candidates")
        return registry

    def load_ballots(self, registry: CandidateRegistry) -> LoadedElection:
        """
        Load ballots, validating each against the registry.

        Returns:
            LoadedElection with the accepted ballots and the dropped ones
        """
        store = BallotStore(registry)
        dropped = []

        for position, ranking in enumerate(self.ballot_source):
            try:
                if isinstance(ranking, InvalidRanking):
                    raise MalformedBallotError(ranking, RANKING_LENGTH, reason=ranking.reason)
                store.append(ranking)
            except (MalformedBallotError, UnknownCandidateError) as e:
                logger.warning(f"Dropping ballot {position}: {e}")
                dropped.append(
                    DroppedBallot(position=position, ranking=tuple(ranking), reason=str(e))
                )

        logger.info(f"Loaded {store.count()} ballots")
        if dropped:
            logger.warning(f"Dropped {len(dropped)} invalid ballots")

        return LoadedElection(registry=registry, ballots=store, dropped_ballots=dropped)

    def load(self) -> LoadedElection:
        """
        Load candidates first, then ballots.

        Raises:
            SourceUnavailableError: if either source cannot be read
            DuplicateCandidateError: if two candidates share an id
        """
        registry = self.load_candidates()
        return self.load_ballots(registry)
