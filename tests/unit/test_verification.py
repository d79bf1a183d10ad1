"""
Unit tests for result verification.
"""

import pytest

from runoff.driver import ElectionDriver, ElectionResult, IRVRound
from runoff.verification import ResultsVerifier


def make_result(rounds, total_ballots=5, winner_id="A"):
    return ElectionResult(
        winner_id=winner_id,
        winner_name={"A": "Alice", "B": "Bob", "C": "Charlie"}[winner_id],
        rounds=rounds,
        total_ballots=total_ballots,
        candidate_names={"A": "Alice", "B": "Bob", "C": "Charlie"},
    )


@pytest.fixture
def sound_result(registry, ballot_store):
    return ElectionDriver(registry, ballot_store).run()


@pytest.mark.unit
@pytest.mark.invariant
class TestInvariantChecks:
    """Test each invariant check on hand-built round records."""

    def test_sound_result_has_no_violations(self, sound_result):
        assert ResultsVerifier(sound_result).check_invariants() == []

    def test_conservation_violation(self):
        result = make_result(
            [IRVRound(1, {"A": 4, "B": 0}, exhausted_ballots=0, threshold=2.5, winner="A")]
        )

        violations = ResultsVerifier(result).check_invariants()

        assert any("expected 5" in v for v in violations)

    def test_eliminated_above_minimum(self):
        result = make_result(
            [
                IRVRound(1, {"A": 2, "B": 1, "C": 2}, 0, 2.5, eliminated="C"),
                IRVRound(2, {"A": 3, "B": 2}, 0, 2.5, winner="A"),
            ]
        )

        violations = ResultsVerifier(result).check_invariants()

        assert any("minimum was 1" in v for v in violations)

    def test_winner_without_majority(self):
        result = make_result(
            [IRVRound(1, {"A": 2, "B": 2}, exhausted_ballots=1, threshold=2.5, winner="A")]
        )

        violations = ResultsVerifier(result).check_invariants()

        assert any("not more than 2.5" in v for v in violations)

    def test_sole_survivor_needs_no_majority(self):
        result = make_result(
            [
                IRVRound(1, {"A": 1, "B": 0}, 4, 2.5, eliminated="B"),
                IRVRound(2, {"A": 1}, 4, 2.5, winner="A"),
            ]
        )

        assert ResultsVerifier(result).check_invariants() == []

    def test_eliminated_candidate_reappears(self):
        result = make_result(
            [
                IRVRound(1, {"A": 2, "B": 1, "C": 2}, 0, 2.5, eliminated="B"),
                IRVRound(2, {"A": 3, "B": 0, "C": 2}, 0, 2.5, winner="A"),
            ]
        )

        violations = ResultsVerifier(result).check_invariants()

        assert any("counted again" in v for v in violations)

    def test_final_round_must_name_winner(self):
        result = make_result(
            [IRVRound(1, {"A": 2, "B": 1, "C": 2}, 0, 2.5, eliminated="B")]
        )

        violations = ResultsVerifier(result).check_invariants()

        assert "Final round does not declare the reported winner" in violations


@pytest.mark.unit
class TestPyRankVoteCrossCheck:
    """Test the independent recount."""

    def test_agrees_on_simple_election(self, sound_result, sample_ballots):
        report = ResultsVerifier(sound_result).cross_check_with_pyrankvote(sample_ballots)

        assert report["winners_match"] is True
        assert report["pyrankvote_winners"] == ["A"]

    def test_reports_disagreement(self, sample_ballots):
        result = make_result(sound_rounds(), winner_id="C")

        report = ResultsVerifier(result).cross_check_with_pyrankvote(sample_ballots)

        assert report["winners_match"] is False
        assert report["our_winner"] == "C"

    def test_duplicate_rankings_are_collapsed(self, sound_result):
        rankings = [("A", "A", "B"), ("A", "A", "A"), ("A", "B", "B"), ("C", "C", "C")]

        report = ResultsVerifier(sound_result).cross_check_with_pyrankvote(rankings)

        assert report["pyrankvote_winners"] == ["A"]


def sound_rounds():
    return [
        IRVRound(1, {"A": 2, "B": 1, "C": 2}, 0, 2.5, eliminated="B"),
        IRVRound(2, {"A": 3, "C": 2}, 0, 2.5, winner="C"),
    ]


@pytest.mark.unit
class TestVerificationReport:
    """Test the text report and round table."""

    def test_report_passes(self, sound_result, sample_ballots):
        verifier = ResultsVerifier(sound_result)
        report = verifier.generate_verification_report(
            verifier.check_invariants(), verifier.cross_check_with_pyrankvote(sample_ballots)
        )

        assert "All round invariants hold" in report
        assert "PyRankVote agrees on the winner: Alice" in report

    def test_report_lists_violations(self, sound_result):
        report = ResultsVerifier(sound_result).generate_verification_report(
            ["Round 1: something wrong"]
        )

        assert "1 invariant violation(s)" in report
        assert "Round 1: something wrong" in report
        assert "PyRankVote" not in report

    def test_elimination_table(self, sound_result):
        table = ResultsVerifier(sound_result).elimination_table()

        assert table["decision"].tolist() == ["eliminated", "elected"]
        assert table["candidate_name"].tolist() == ["Bob", "Alice"]
        assert table["continuing"].tolist() == [3, 2]
