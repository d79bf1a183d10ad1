"""
Input records for instant-runoff counts: candidate and ballot sources in
XML, CSV and DuckDB form, and the loader that turns them into a registry
and ballot store.
"""

from .database import ElectionDatabase
from .loader import ElectionLoader, LoadedElection
from .sources import (
    BallotSource,
    CandidateSource,
    InvalidRanking,
    ListBallotSource,
    ListCandidateSource,
    open_ballot_source,
    open_candidate_source,
)

__all__ = [
    "ElectionDatabase",
    "ElectionLoader",
    "LoadedElection",
    "BallotSource",
    "CandidateSource",
    "InvalidRanking",
    "ListBallotSource",
    "ListCandidateSource",
    "open_ballot_source",
    "open_candidate_source",
]
