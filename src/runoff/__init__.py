"""
Instant-runoff election tabulation.

The count is split into a candidate registry, a ballot store whose
per-ballot cursors advance past eliminated candidates, a tabulator that
computes and resolves one round, and a driver that repeats rounds until
a winner is found.
"""

from .ballots import Ballot, BallotStore, DroppedBallot
from .config import TabulationConfig
from .driver import ElectionDriver, ElectionResult, IRVRound, TextReporter
from .errors import (
    BallotExhaustedError,
    DuplicateCandidateError,
    ElectionError,
    MalformedBallotError,
    SourceUnavailableError,
    UnknownCandidateError,
)
from .registry import Candidate, CandidateRegistry
from .tabulator import Eliminated, Tabulator, Tally, Winner

__all__ = [
    "Ballot",
    "BallotStore",
    "DroppedBallot",
    "TabulationConfig",
    "ElectionDriver",
    "ElectionResult",
    "IRVRound",
    "TextReporter",
    "BallotExhaustedError",
    "DuplicateCandidateError",
    "ElectionError",
    "MalformedBallotError",
    "SourceUnavailableError",
    "UnknownCandidateError",
    "Candidate",
    "CandidateRegistry",
    "Eliminated",
    "Tabulator",
    "Tally",
    "Winner",
]
