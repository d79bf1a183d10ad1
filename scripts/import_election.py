#!/usr/bin/env python3
"""
Import candidate and ballot sources into a DuckDB election database.

The database can then be passed to run_irv.py in place of the original
files. Ballots are stored as read, so short rankings and unknown ids are
still reported when the count runs. Rankings longer than three, and XML
ballots with unusable rank numbering, cannot be stored and are skipped.
"""

import argparse
import logging
import sys
from pathlib import Path

import duckdb

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from runoff.errors import ElectionError  # noqa: E402
from runoff_records.database import ElectionDatabase  # noqa: E402
from runoff_records.loader import ElectionLoader  # noqa: E402
from runoff_records.sources import (  # noqa: E402
    InvalidRanking,
    open_ballot_source,
    open_candidate_source,
    supported_formats,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import election data into DuckDB")
    parser.add_argument("candidates", help="Candidate source (.xml or .csv)")
    parser.add_argument("ballots", help="Ballot source (.xml or .csv)")
    parser.add_argument("--db", required=True, help="Path to DuckDB database file")
    parser.add_argument(
        "--format",
        choices=supported_formats(),
        help="Source format for both inputs (default: from file suffix)",
    )

    args = parser.parse_args(argv)

    try:
        candidate_source = open_candidate_source(args.candidates, args.format)
        ballot_source = open_ballot_source(args.ballots, args.format)

        # Step 1: validate candidates before anything is written
        logger.info("=== Step 1: Reading Candidates ===")
        registry = ElectionLoader(candidate_source, ballot_source).load_candidates()
        print(f"✓ Found {len(registry)} candidates")

        # Step 2: read ballots as-is
        logger.info("=== Step 2: Reading Ballots ===")
        rankings = []
        skipped = 0
        for position, ranking in enumerate(ballot_source):
            if isinstance(ranking, InvalidRanking):
                logger.warning(f"Skipping ballot {position}: {ranking.reason}")
                skipped += 1
                continue
            if len(ranking) > 3:
                logger.warning(
                    f"Skipping ballot {position}: {len(ranking)} rankings cannot be stored"
                )
                skipped += 1
                continue
            rankings.append(ranking)
        print(f"✓ Read {len(rankings)} ballots")
        if skipped:
            print(f"⚠️  Warning: skipped {skipped} ballots that cannot be stored")

        # Step 3: write to the database
        logger.info("=== Step 3: Writing Database ===")
        with ElectionDatabase(args.db, read_only=False) as db:
            db.create_schema()
            db.write_candidates(
                (c.candidate_id, c.name) for c in registry.enumerate()
            )
            db.write_ballots(rankings)

        print(f"✓ Election data written to: {args.db}")

    except ElectionError as e:
        logger.error(f"Error importing election data: {e}")
        return 1
    except duckdb.Error as e:
        logger.error(f"Database error writing {args.db}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
