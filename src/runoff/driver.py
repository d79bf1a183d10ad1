import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, TextIO

import pandas as pd

from .ballots import BallotStore, DroppedBallot
from .config import TabulationConfig
from .errors import ElectionError
from .registry import CandidateRegistry
from .tabulator import Tabulator, Winner

logger = logging.getLogger(__name__)


@dataclass
class IRVRound:
    """Represents one round of instant-runoff tabulation."""

    round_number: int
    vote_totals: Dict[str, int]  # continuing candidates, registry order
    exhausted_ballots: int
    threshold: float
    winner: Optional[str] = None
    eliminated: Optional[str] = None

    @property
    def continuing_candidates(self) -> List[str]:
        return list(self.vote_totals)


@dataclass
class ElectionResult:
    """Outcome of a complete count."""

    winner_id: str
    winner_name: str
    rounds: List[IRVRound]
    total_ballots: int
    candidate_names: Dict[str, str]  # every candidate, registry order
    dropped_ballots: List[DroppedBallot] = field(default_factory=list)

    @property
    def elimination_order(self) -> List[str]:
        return [r.eliminated for r in self.rounds if r.eliminated is not None]

    def round_summary(self) -> pd.DataFrame:
        """
        Get summary of all rounds as a long-format DataFrame.

        Returns:
            DataFrame with one row per continuing candidate per round
        """
        summary_data = []
        for round_obj in self.rounds:
            for candidate_id, votes in round_obj.vote_totals.items():
                summary_data.append(
                    {
                        "round": round_obj.round_number,
                        "candidate_id": candidate_id,
                        "candidate_name": self.candidate_names[candidate_id],
                        "votes": votes,
                        "status": self._get_candidate_status(candidate_id, round_obj),
                        "exhausted_ballots": round_obj.exhausted_ballots,
                    }
                )

        return pd.DataFrame(
            summary_data,
            columns=[
                "round",
                "candidate_id",
                "candidate_name",
                "votes",
                "status",
                "exhausted_ballots",
            ],
        )

    def _get_candidate_status(self, candidate_id: str, round_obj: IRVRound) -> str:
        if candidate_id == round_obj.winner:
            return "elected"
        elif candidate_id == round_obj.eliminated:
            return "eliminated"
        return "continuing"

    def final_results(self) -> pd.DataFrame:
        """
        Get final standing of every candidate.

        Returns:
            DataFrame with each candidate's last tally and the round they left
        """
        last_votes = {}
        last_round = {}
        for round_obj in self.rounds:
            for candidate_id, votes in round_obj.vote_totals.items():
                last_votes[candidate_id] = votes
                last_round[candidate_id] = round_obj.round_number

        results_data = []
        for candidate_id, name in self.candidate_names.items():
            results_data.append(
                {
                    "candidate_id": candidate_id,
                    "candidate_name": name,
                    "final_votes": last_votes.get(candidate_id, 0),
                    "status": "elected" if candidate_id == self.winner_id else "not_elected",
                    "last_round": last_round.get(candidate_id),
                }
            )

        return pd.DataFrame(results_data)

    def dropped_summary(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "position": d.position,
                    "ranking": " > ".join(d.ranking),
                    "reason": d.reason,
                }
                for d in self.dropped_ballots
            ],
            columns=["position", "ranking", "reason"],
        )

    def export_csv(self, path) -> List[Path]:
        """
        Write the round summary to ``path`` and dropped ballots alongside it.

        Returns:
            Paths of the files written
        """
        export_path = Path(path).with_suffix(".csv")
        dropped_path = export_path.with_name(export_path.stem + "_dropped.csv")

        self.round_summary().to_csv(export_path, index=False)
        self.dropped_summary().to_csv(dropped_path, index=False)
        logger.info(f"Exported round summary to {export_path}")
        return [export_path, dropped_path]


class TextReporter:
    """Prints round-by-round results in plain text."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def _print(self, line: str = ""):
        print(line, file=self.stream)

    def report_start(self, total_ballots: int, dropped: int):
        self._print(f"\nTotal Ballots: {total_ballots}")
        if dropped:
            self._print(f"Dropped Ballots: {dropped}")

    def report_round(self, round_obj: IRVRound, registry: CandidateRegistry):
        self._print(f"\nRound {round_obj.round_number} Runoff Results:")
        for candidate_id, votes in round_obj.vote_totals.items():
            self._print(f"{registry.name_of(candidate_id)}: {votes} vote(s)")
        if round_obj.exhausted_ballots:
            self._print(f"Exhausted: {round_obj.exhausted_ballots} ballot(s)")

    def report_winner(self, name: str):
        self._print(f"\nThe winner is {name}")


class ElectionDriver:
    """
    Runs rounds until a winner is found.

    Each round tallies the ballots, reports the tally and then resolves it.
    Every round without a winner eliminates exactly one continuing
    candidate, so the count ends within as many rounds as there are
    candidates.
    """

    def __init__(
        self,
        registry: CandidateRegistry,
        ballots: BallotStore,
        config: Optional[TabulationConfig] = None,
        reporter: Optional[TextReporter] = None,
        dropped_ballots: Optional[List[DroppedBallot]] = None,
    ):
        self.registry = registry
        self.ballots = ballots
        self.config = config or TabulationConfig()
        self.tabulator = Tabulator(self.config)
        self.reporter = reporter
        self.dropped_ballots = list(dropped_ballots or [])
        self.rounds: List[IRVRound] = []

    def run(self) -> ElectionResult:
        """
        Run the complete count.

        Returns:
            ElectionResult with the winner and every round

        Raises:
            ElectionError: if there are no candidates or the round limit is hit
        """
        if len(self.registry) == 0:
            raise ElectionError("no candidates")

        total_ballots = self.ballots.count()
        max_rounds = self.config.max_rounds or len(self.registry)

        logger.info(
            f"Starting instant-runoff tabulation: {len(self.registry)} candidates, "
            f"{total_ballots} ballots"
        )
        if self.reporter:
            self.reporter.report_start(total_ballots, len(self.dropped_ballots))

        self.rounds = []
        round_num = 0
        winner_id = None

        while winner_id is None:
            round_num += 1
            if round_num > max_rounds:
                raise ElectionError(f"No winner after {max_rounds} rounds")

            tally = self.tabulator.tally_round(self.registry, self.ballots)
            round_obj = IRVRound(
                round_number=round_num,
                vote_totals=dict(tally.votes),
                exhausted_ballots=tally.exhausted,
                threshold=self.tabulator.majority_threshold(tally, total_ballots),
            )
            if self.reporter:
                self.reporter.report_round(round_obj, self.registry)

            outcome = self.tabulator.resolve_round(tally, self.registry, total_ballots)
            if isinstance(outcome, Winner):
                winner_id = outcome.candidate_id
                round_obj.winner = winner_id
            else:
                round_obj.eliminated = outcome.candidate_id

            self.rounds.append(round_obj)

        winner_name = self.registry.name_of(winner_id)
        if self.reporter:
            self.reporter.report_winner(winner_name)

        logger.info(f"Tabulation complete after {round_num} rounds; winner: {winner_name}")

        return ElectionResult(
            winner_id=winner_id,
            winner_name=winner_name,
            rounds=self.rounds,
            total_ballots=total_ballots,
            candidate_names={c.candidate_id: c.name for c in self.registry.enumerate()},
            dropped_ballots=self.dropped_ballots,
        )
