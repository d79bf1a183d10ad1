"""
Exception hierarchy for instant-runoff tabulation.

Load-time failures (missing sources, duplicate candidates) are fatal and
propagate to the caller. Per-ballot validation failures are raised by
the ballot store and recovered by the loader, which drops the ballot.
"""

from typing import Optional, Sequence


class ElectionError(Exception):
    """Base class for all election errors."""


class SourceUnavailableError(ElectionError):
    """An input source is missing, unreadable or structurally invalid."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Source unavailable: {source} ({reason})")
        self.source = source
        self.reason = reason


class DuplicateCandidateError(ElectionError):
    """Two candidates were registered under the same identifier."""

    def __init__(self, candidate_id: str):
        super().__init__(f"Duplicate candidate id: {candidate_id!r}")
        self.candidate_id = candidate_id


class UnknownCandidateError(ElectionError, KeyError):
    """An identifier does not belong to any registered candidate."""

    def __init__(self, candidate_id: str, ranking: Optional[Sequence[str]] = None):
        super().__init__(f"Unknown candidate id: {candidate_id!r}")
        self.candidate_id = candidate_id
        self.ranking = tuple(ranking) if ranking is not None else None

    def __str__(self):
        # KeyError would otherwise repr() the message
        return self.args[0]


class MalformedBallotError(ElectionError, ValueError):
    """A ranking is the wrong length or its source numbering is unusable."""

    def __init__(self, ranking: Sequence[str], expected: int, reason: Optional[str] = None):
        ranking = tuple(ranking)
        if reason is None:
            message = f"Ballot must rank exactly {expected} candidates, got {len(ranking)}"
        else:
            message = f"Ballot has invalid ranks: {reason}"
        super().__init__(f"{message}: {list(ranking)}")
        self.ranking = ranking
        self.expected = expected
        self.reason = reason


class BallotExhaustedError(ElectionError):
    """A ballot cursor was advanced past its last ranked candidate."""

    def __init__(self, ranking: Sequence[str]):
        super().__init__(f"No further preferences on ballot {list(ranking)}")
        self.ranking = tuple(ranking)
