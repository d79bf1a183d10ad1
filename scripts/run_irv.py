#!/usr/bin/env python3
"""
Run an instant-runoff count from a candidate source and a ballot source.
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from runoff.config import MAJORITY_BASES, TabulationConfig  # noqa: E402
from runoff.driver import ElectionDriver, TextReporter  # noqa: E402
from runoff.errors import ElectionError  # noqa: E402
from runoff.verification import ResultsVerifier  # noqa: E402
from runoff_records.loader import ElectionLoader  # noqa: E402
from runoff_records.sources import (  # noqa: E402
    open_ballot_source,
    open_candidate_source,
    supported_formats,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run instant-runoff tabulation")
    parser.add_argument("candidates", help="Candidate source (.xml, .csv or .duckdb)")
    parser.add_argument("ballots", help="Ballot source (.xml, .csv or .duckdb)")
    parser.add_argument(
        "--format",
        choices=supported_formats(),
        help="Source format for both inputs (default: from file suffix)",
    )
    parser.add_argument(
        "--majority-basis",
        choices=MAJORITY_BASES,
        help="Count the majority against all ballots or only continuing ones",
    )
    parser.add_argument("--max-rounds", type=int, help="Stop with an error after this many rounds")
    parser.add_argument("--export", help="Export round summary to CSV file")
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Check round invariants and recount with PyRankVote",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get("RUNOFF_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO or $RUNOFF_LOG_LEVEL)",
    )
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    # argparse does not check an environment-supplied default against choices
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid log level: {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        config = TabulationConfig.from_env()
        config = replace(
            config,
            majority_basis=args.majority_basis or config.majority_basis,
            max_rounds=args.max_rounds if args.max_rounds is not None else config.max_rounds,
        )
    except ValueError as e:
        parser.error(str(e))

    try:
        loader = ElectionLoader(
            open_candidate_source(args.candidates, args.format),
            open_ballot_source(args.ballots, args.format),
        )

        logger.info("=== Loading Election ===")
        election = loader.load()

        logger.info("=== Instant-Runoff Tabulation ===")
        driver = ElectionDriver(
            election.registry,
            election.ballots,
            config=config,
            reporter=TextReporter(sys.stdout),
            dropped_ballots=election.dropped_ballots,
        )
        result = driver.run()

        if args.verify:
            verifier = ResultsVerifier(result)
            violations = verifier.check_invariants()
            cross_check = verifier.cross_check_with_pyrankvote(election.ballots.rankings())
            print()
            print(verifier.generate_verification_report(violations, cross_check))
            if violations:
                return 1

        if args.export:
            for path in result.export_csv(args.export):
                print(f"✓ Exported to: {path}")

    except ElectionError as e:
        logger.error(f"Error running instant-runoff tabulation: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
