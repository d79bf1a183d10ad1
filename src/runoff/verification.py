import logging
from typing import Dict, List, Sequence

import pandas as pd
from pyrankvote import Ballot, Candidate, instant_runoff_voting

from .driver import ElectionResult

logger = logging.getLogger(__name__)


class ResultsVerifier:
    """
    Checks a finished count for internal consistency and, optionally,
    against an independent instant-runoff implementation.
    """

    def __init__(self, result: ElectionResult):
        """
        Initialize verifier.

        Args:
            result: Completed election result to check
        """
        self.result = result

    def check_invariants(self) -> List[str]:
        """
        Check the round records against the rules every count must obey.

        Returns:
            List of human-readable violations (empty when the count is sound)
        """
        violations = []
        seen_eliminated = set()
        rounds = self.result.rounds

        for round_obj in rounds:
            label = f"Round {round_obj.round_number}"
            totals = round_obj.vote_totals

            counted = sum(totals.values()) + round_obj.exhausted_ballots
            if counted != self.result.total_ballots:
                violations.append(
                    f"{label}: {counted} votes and exhausted ballots, "
                    f"expected {self.result.total_ballots}"
                )

            reappeared = seen_eliminated.intersection(totals)
            if reappeared:
                violations.append(
                    f"{label}: eliminated candidates counted again: {sorted(reappeared)}"
                )

            if round_obj.eliminated is not None:
                lowest = min(totals.values())
                if totals[round_obj.eliminated] != lowest:
                    violations.append(
                        f"{label}: eliminated {round_obj.eliminated} with "
                        f"{totals[round_obj.eliminated]} votes but the minimum was {lowest}"
                    )
                seen_eliminated.add(round_obj.eliminated)

            if round_obj.winner is not None:
                if round_obj is not rounds[-1]:
                    violations.append(f"{label}: winner declared before the final round")
                sole_survivor = len(totals) == 1
                if not sole_survivor and totals[round_obj.winner] <= round_obj.threshold:
                    violations.append(
                        f"{label}: winner {round_obj.winner} has {totals[round_obj.winner]} "
                        f"votes, not more than {round_obj.threshold:g}"
                    )
            elif round_obj.eliminated is None:
                violations.append(f"{label}: neither a winner nor an elimination")

        if not rounds or rounds[-1].winner != self.result.winner_id:
            violations.append("Final round does not declare the reported winner")

        for violation in violations:
            logger.warning(f"Invariant violated: {violation}")

        return violations

    def cross_check_with_pyrankvote(self, rankings: Sequence[Sequence[str]]) -> Dict:
        """
        Recount the same ballots with PyRankVote and compare winners.

        PyRankVote breaks ties its own way, so disagreement is reported
        rather than raised.

        Args:
            rankings: The accepted rankings, in load order

        Returns:
            Dictionary with both winners and whether they agree
        """
        candidates_map = {
            candidate_id: Candidate(candidate_id)
            for candidate_id in self.result.candidate_names
        }

        ballots = []
        for ranking in rankings:
            ranked_candidates = []
            seen_candidates = set()
            for candidate_id in ranking:
                if candidate_id in candidates_map and candidate_id not in seen_candidates:
                    ranked_candidates.append(candidates_map[candidate_id])
                    seen_candidates.add(candidate_id)
            if ranked_candidates:
                ballots.append(Ballot(ranked_candidates=ranked_candidates))

        logger.info(
            f"Cross-checking with PyRankVote: {len(candidates_map)} candidates, {len(ballots)} ballots"
        )
        election = instant_runoff_voting(list(candidates_map.values()), ballots)
        pyrankvote_winners = [winner.name for winner in election.get_winners()]

        winners_match = pyrankvote_winners == [self.result.winner_id]
        if not winners_match:
            logger.warning(
                f"PyRankVote winner {pyrankvote_winners} differs from {self.result.winner_id}"
            )

        return {
            "winners_match": winners_match,
            "our_winner": self.result.winner_id,
            "pyrankvote_winners": pyrankvote_winners,
        }

    def generate_verification_report(
        self, violations: List[str], cross_check: Dict = None
    ) -> str:
        """
        Generate a human-readable verification report.

        Args:
            violations: Output of check_invariants()
            cross_check: Output of cross_check_with_pyrankvote(), if run

        Returns:
            Formatted verification report string
        """
        report = []
        report.append("=" * 60)
        report.append("INSTANT-RUNOFF VERIFICATION REPORT")
        report.append("=" * 60)

        if violations:
            report.append(f"❌ {len(violations)} invariant violation(s):")
            for violation in violations:
                report.append(f"  {violation}")
        else:
            report.append("✅ All round invariants hold")

        if cross_check is not None:
            report.append("")
            names = self.result.candidate_names
            theirs = ", ".join(names.get(w, w) for w in cross_check["pyrankvote_winners"])
            if cross_check["winners_match"]:
                report.append(f"✅ PyRankVote agrees on the winner: {theirs}")
            else:
                report.append("❌ PyRankVote disagrees on the winner")
                report.append(f"  Ours: {names[cross_check['our_winner']]}")
                report.append(f"  PyRankVote: {theirs}")

        return "\n".join(report)

    def elimination_table(self) -> pd.DataFrame:
        """One row per round with the round's decision."""
        names = self.result.candidate_names
        return pd.DataFrame(
            [
                {
                    "round": r.round_number,
                    "continuing": len(r.vote_totals),
                    "threshold": r.threshold,
                    "exhausted_ballots": r.exhausted_ballots,
                    "decision": "elected" if r.winner else "eliminated",
                    "candidate_name": names[r.winner or r.eliminated],
                }
                for r in self.result.rounds
            ]
        )
