"""
Candidate and ballot sources.

A candidate source yields ``(candidate_id, name)`` pairs and a ballot
source yields rankings (tuples of candidate ids, most preferred first).
Sources are restartable: every iteration rereads the underlying data.
Ballot sources do not validate rankings; that is left to the loader so
that bad ballots are counted and reported in one place.
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import duckdb
import pandas as pd

try:
    from ..runoff.ballots import RANKING_LENGTH
    from ..runoff.errors import SourceUnavailableError
except ImportError:
    from runoff.ballots import RANKING_LENGTH
    from runoff.errors import SourceUnavailableError

from .database import ElectionDatabase

logger = logging.getLogger(__name__)

CandidateRecord = Tuple[str, str]
Ranking = Tuple[str, ...]

RANK_COLUMN = re.compile(r"^rank_(\d+)$")
EXPECTED_RANKS = list(range(1, RANKING_LENGTH + 1))

SUFFIX_FORMATS = {
    ".xml": "xml",
    ".csv": "csv",
    ".duckdb": "duckdb",
    ".db": "duckdb",
}


class CandidateSource:
    """Finite, restartable sequence of (candidate_id, name) pairs."""

    def __iter__(self) -> Iterator[CandidateRecord]:
        raise NotImplementedError


class BallotSource:
    """Finite, restartable sequence of rankings."""

    def __iter__(self) -> Iterator[Ranking]:
        raise NotImplementedError


class ListCandidateSource(CandidateSource):
    def __init__(self, candidates: Iterable[CandidateRecord]):
        self.candidates = [(str(cid), str(name)) for cid, name in candidates]

    def __iter__(self):
        return iter(self.candidates)


class ListBallotSource(BallotSource):
    def __init__(self, rankings: Iterable[Sequence[str]]):
        self.rankings = [tuple(ranking) for ranking in rankings]

    def __iter__(self):
        return iter(self.rankings)


class InvalidRanking(tuple):
    """
    A ranking read from a source whose rank numbering is unusable.

    Compares equal to the candidate ids that could be read, in rank
    order. The loader drops it as malformed using ``reason``.
    """

    def __new__(cls, candidate_ids, reason: str):
        ranking = super().__new__(cls, candidate_ids)
        ranking.reason = reason
        return ranking


def _parse_xml(path: Path) -> ET.Element:
    try:
        return ET.parse(path).getroot()
    except OSError as e:
        raise SourceUnavailableError(str(path), e.strerror or str(e)) from e
    except ET.ParseError as e:
        raise SourceUnavailableError(str(path), f"invalid XML: {e}") from e


class XMLCandidateSource(CandidateSource):
    """
    Reads ``<candidate id="..."><name>...</name></candidate>`` elements
    directly under the document root.
    """

    def __init__(self, path):
        self.path = Path(path)

    def __iter__(self):
        root = _parse_xml(self.path)
        logger.info(f"Reading candidates from XML: {self.path}")
        for element in root.findall("candidate"):
            candidate_id = element.get("id")
            if candidate_id is None:
                raise SourceUnavailableError(
                    str(self.path), "candidate element without an id attribute"
                )
            name = (element.findtext("name") or "").strip()
            yield candidate_id.strip(), name


class XMLBallotSource(BallotSource):
    """
    Reads ``<ballot><vote rank="1">A</vote>...</ballot>`` elements.

    Votes are ordered by their rank attribute. A ballot whose ranks are
    not exactly 1 to 3 (a gap, a repeat, an out-of-range or non-integer
    rank) is yielded as an ``InvalidRanking`` so the loader drops it.
    """

    def __init__(self, path):
        self.path = Path(path)

    def __iter__(self):
        root = _parse_xml(self.path)
        logger.info(f"Reading ballots from XML: {self.path}")
        for element in root.findall("ballot"):
            yield self._read_ballot(element)

    @staticmethod
    def _read_ballot(element: ET.Element) -> Ranking:
        votes = []
        bad_ranks = []
        for vote in element.findall("vote"):
            raw_rank = vote.get("rank", "")
            try:
                rank = int(raw_rank)
            except ValueError:
                bad_ranks.append(raw_rank)
                continue
            votes.append((rank, (vote.text or "").strip()))

        votes.sort(key=lambda v: v[0])
        candidate_ids = tuple(candidate_id for _, candidate_id in votes)
        ranks = [rank for rank, _ in votes]

        if bad_ranks:
            return InvalidRanking(candidate_ids, f"non-integer ranks {bad_ranks}")
        if ranks != EXPECTED_RANKS:
            return InvalidRanking(candidate_ids, f"ranks {ranks}, expected {EXPECTED_RANKS}")
        return candidate_ids


def _read_csv(path: Path, required: Sequence[str]) -> pd.DataFrame:
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except OSError as e:
        raise SourceUnavailableError(str(path), e.strerror or str(e)) from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise SourceUnavailableError(str(path), f"invalid CSV: {e}") from e

    missing = [column for column in required if column not in df.columns]
    if missing:
        raise SourceUnavailableError(str(path), f"missing columns: {', '.join(missing)}")
    return df


class CSVCandidateSource(CandidateSource):
    """CSV file with ``candidate_id`` and ``candidate_name`` columns."""

    def __init__(self, path):
        self.path = Path(path)

    def __iter__(self):
        df = _read_csv(self.path, ["candidate_id", "candidate_name"])
        logger.info(f"Reading {len(df)} candidates from CSV: {self.path}")
        for _, row in df.iterrows():
            yield row["candidate_id"].strip(), row["candidate_name"].strip()


class CSVBallotSource(BallotSource):
    """
    CSV file with ``rank_1``, ``rank_2``, ``rank_3`` columns.

    Any further ``rank_N`` columns are read too, so over-long rankings reach
    the loader and are rejected there. Blank cells are left out.
    """

    def __init__(self, path):
        self.path = Path(path)

    def __iter__(self):
        df = _read_csv(self.path, ["rank_1"])
        rank_columns = sorted(
            (c for c in df.columns if RANK_COLUMN.match(c)),
            key=lambda c: int(RANK_COLUMN.match(c).group(1)),
        )
        logger.info(f"Reading {len(df)} ballots from CSV: {self.path}")
        for _, row in df.iterrows():
            yield tuple(
                row[column].strip() for column in rank_columns if row[column].strip()
            )


class _DuckDBSource:
    def __init__(self, path):
        self.path = Path(path)

    def _query(self, sql: str) -> pd.DataFrame:
        # duckdb.connect would silently create a missing file
        if not self.path.exists():
            raise SourceUnavailableError(str(self.path), "file not found")
        try:
            with ElectionDatabase(str(self.path), read_only=True) as db:
                return db.query(sql)
        except duckdb.Error as e:
            raise SourceUnavailableError(str(self.path), str(e)) from e


class DuckDBCandidateSource(_DuckDBSource, CandidateSource):
    """``candidates`` table of an election database, in position order."""

    def __iter__(self):
        df = self._query(
            "SELECT candidate_id, candidate_name FROM candidates ORDER BY position"
        )
        logger.info(f"Reading {len(df)} candidates from DuckDB: {self.path}")
        for _, row in df.iterrows():
            yield str(row["candidate_id"]), str(row["candidate_name"])


class DuckDBBallotSource(_DuckDBSource, BallotSource):
    """``ballots`` table of an election database, in position order."""

    def __iter__(self):
        df = self._query(
            "SELECT rank_1, rank_2, rank_3 FROM ballots ORDER BY position"
        )
        logger.info(f"Reading {len(df)} ballots from DuckDB: {self.path}")
        for row in df.itertuples(index=False):
            yield tuple(str(value) for value in row if isinstance(value, str))


CANDIDATE_SOURCES = {
    "xml": XMLCandidateSource,
    "csv": CSVCandidateSource,
    "duckdb": DuckDBCandidateSource,
}

BALLOT_SOURCES = {
    "xml": XMLBallotSource,
    "csv": CSVBallotSource,
    "duckdb": DuckDBBallotSource,
}


def detect_format(path, fmt: Optional[str] = None) -> str:
    """
    Pick a source format from an explicit name or the file suffix.

    Raises:
        SourceUnavailableError: if the format cannot be determined
    """
    if fmt is not None:
        if fmt not in CANDIDATE_SOURCES:
            raise SourceUnavailableError(str(path), f"unsupported format {fmt!r}")
        return fmt

    suffix = Path(path).suffix.lower()
    if suffix not in SUFFIX_FORMATS:
        raise SourceUnavailableError(
            str(path), f"cannot infer format from suffix {suffix!r}"
        )
    return SUFFIX_FORMATS[suffix]


def open_candidate_source(path, fmt: Optional[str] = None) -> CandidateSource:
    return CANDIDATE_SOURCES[detect_format(path, fmt)](path)


def open_ballot_source(path, fmt: Optional[str] = None) -> BallotSource:
    return BALLOT_SOURCES[detect_format(path, fmt)](path)


def supported_formats() -> List[str]:
    return sorted(CANDIDATE_SOURCES)
