"""
Shared pytest configuration and fixtures for the instant-runoff tabulator.

This module provides common test fixtures and utilities used across
all test modules.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from runoff.ballots import BallotStore  # noqa: E402
from runoff.registry import CandidateRegistry  # noqa: E402
from runoff_records.database import ElectionDatabase  # noqa: E402

CANDIDATES_XML = """<?xml version="1.0"?>
<candidates>
  <candidate id="A"><name>Alice</name></candidate>
  <candidate id="B"><name>Bob</name></candidate>
  <candidate id="C"><name>Charlie</name></candidate>
</candidates>
"""

BALLOTS_XML = """<?xml version="1.0"?>
<ballots>
  <ballot><vote rank="1">A</vote><vote rank="2">B</vote><vote rank="3">C</vote></ballot>
  <ballot><vote rank="1">A</vote><vote rank="2">B</vote><vote rank="3">C</vote></ballot>
  <ballot><vote rank="2">A</vote><vote rank="1">B</vote><vote rank="3">C</vote></ballot>
  <ballot><vote rank="1">C</vote><vote rank="2">B</vote><vote rank="3">A</vote></ballot>
  <ballot><vote rank="1">C</vote><vote rank="2">B</vote><vote rank="3">A</vote></ballot>
</ballots>
"""


@pytest.fixture
def temp_db():
    """Provide a temporary in-memory database for testing."""
    db = ElectionDatabase(":memory:")
    yield db
    db.close()


@pytest.fixture
def temp_db_file():
    """Provide a path for a temporary database file (not yet created)."""
    fd, db_path = tempfile.mkstemp(suffix=".duckdb")
    os.close(fd)
    os.unlink(db_path)  # DuckDB refuses to open an empty non-database file

    try:
        yield db_path
    finally:
        for path in (db_path, db_path + ".wal"):
            if os.path.exists(path):
                os.unlink(path)


@pytest.fixture
def sample_candidates():
    """Provide sample candidate records for testing."""
    return [("A", "Alice"), ("B", "Bob"), ("C", "Charlie")]


@pytest.fixture
def sample_ballots():
    """Five ballots where B is eliminated first and A then wins 3-2."""
    return [
        ("A", "B", "C"),
        ("A", "B", "C"),
        ("B", "A", "C"),
        ("C", "B", "A"),
        ("C", "B", "A"),
    ]


@pytest.fixture
def registry(sample_candidates):
    registry = CandidateRegistry()
    for candidate_id, name in sample_candidates:
        registry.register(candidate_id, name)
    return registry


@pytest.fixture
def ballot_store(registry, sample_ballots):
    store = BallotStore(registry)
    for ranking in sample_ballots:
        store.append(ranking)
    return store


@pytest.fixture
def xml_election(tmp_path):
    """Write the sample election as XML files and return their paths."""
    candidates_path = tmp_path / "candidates.xml"
    ballots_path = tmp_path / "ballots.xml"
    candidates_path.write_text(CANDIDATES_XML)
    ballots_path.write_text(BALLOTS_XML)
    return candidates_path, ballots_path


@pytest.fixture
def csv_election(tmp_path, sample_candidates, sample_ballots):
    """Write the sample election as CSV files and return their paths."""
    candidates_path = tmp_path / "candidates.csv"
    ballots_path = tmp_path / "ballots.csv"

    lines = ["candidate_id,candidate_name"]
    lines += [f"{cid},{name}" for cid, name in sample_candidates]
    candidates_path.write_text("\n".join(lines) + "\n")

    lines = ["ballot_id,rank_1,rank_2,rank_3"]
    lines += [f"B{i},{','.join(r)}" for i, r in enumerate(sample_ballots, 1)]
    ballots_path.write_text("\n".join(lines) + "\n")

    return candidates_path, ballots_path


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (end-to-end, files and subprocesses)",
    )
    config.addinivalue_line(
        "markers",
        "golden: marks tests as golden dataset validation (hand-computed elections)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as tabulation invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
