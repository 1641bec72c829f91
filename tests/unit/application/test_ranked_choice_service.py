"""Unit tests for RankedChoiceService.

Tests instant-runoff rounds, elimination tie-breaks, the round safety bound,
multi-seat positional scoring and tally-time validation.
"""

import pytest
from structlog.testing import capture_logs

from vote_integrity.application.services.ranked_choice_service import (
    RankedChoiceService,
    describe_round,
)
from vote_integrity.config.engine_config import EngineConfig
from vote_integrity.domain.errors import (
    EmptyBallotError,
    InvalidRankingError,
    RankingErrorCode,
)
from vote_integrity.domain.models.ballot import Ballot, BallotKind, Candidate
from vote_integrity.domain.models.tally import RoundResult, RunoffOutcome
from vote_integrity.domain.models.vote import Ranked, Yes


def ranked(*orders: str) -> list[Ranked]:
    """Build Ranked payloads from strings like "CA" (C first, then A)."""
    return [Ranked(tuple(order)) for order in orders]


class TestInstantRunoff:
    """Tests for single-seat instant runoff."""

    def test_majority_in_first_round(self, two_candidate_ballot: Ballot) -> None:
        """A=3, B=2 of 5: A reaches floor(5/2)+1 = 3 and wins in round 1."""
        result = RankedChoiceService().run_instant_runoff(
            two_candidate_ballot, ranked("A", "AB", "A", "BA", "B")
        )

        assert result.winner == "A"
        assert result.outcome is RunoffOutcome.MAJORITY_FOUND
        assert result.is_tied is False
        assert len(result.rounds) == 1
        assert result.rounds[0].vote_counts == {"A": 3, "B": 2}
        assert result.rounds[0].eliminated is None
        assert result.total_votes == 5

    def test_elimination_redistributes(self, three_candidate_ballot: Ballot) -> None:
        """A=1, B=1, C=2 of 4: no majority; A is eliminated (lexical), C wins."""
        result = RankedChoiceService().run_instant_runoff(
            three_candidate_ballot, ranked("A", "B", "CA", "CA")
        )

        assert result.winner == "C"
        assert result.outcome is RunoffOutcome.MAJORITY_FOUND
        assert [r.eliminated for r in result.rounds] == ["A", None]
        assert result.rounds[0].vote_counts == {"A": 1, "B": 1, "C": 2}
        # A's only vote is exhausted in round 2
        assert result.rounds[1].vote_counts == {"B": 1, "C": 2}
        assert result.rounds[1].total_votes == 3
        assert result.final_counts == {"B": 1, "C": 2}

    def test_elimination_transfers_to_next_preference(self) -> None:
        ballot = Ballot(
            id="b",
            kind=BallotKind.SINGLE_SEAT,
            candidates=(Candidate("A", "A"), Candidate("B", "B"), Candidate("C", "C")),
        )

        result = RankedChoiceService().run_instant_runoff(
            ballot, ranked("AB", "AB", "BA", "BA", "CB")
        )

        # Round 1: A=2, B=2, C=1 -> C out; round 2: A=2, B=3 -> B wins
        assert result.rounds[0].eliminated == "C"
        assert result.rounds[1].vote_counts == {"A": 2, "B": 3}
        assert result.winner == "B"

    def test_tie_break_is_lexical_not_ballot_order(self) -> None:
        """Among tied lowest candidates the smallest id is eliminated first."""
        ballot = Ballot(
            id="b",
            kind=BallotKind.SINGLE_SEAT,
            candidates=(Candidate("z", "Zed"), Candidate("m", "Em"), Candidate("a", "Ay")),
        )

        result = RankedChoiceService().run_instant_runoff(ballot, ranked("z", "m", "a", "a"))

        assert result.rounds[0].eliminated == "m"

    def test_even_split_resolves_by_elimination(self, two_candidate_ballot: Ballot) -> None:
        """A 1-1 split has no majority, so A is eliminated and B wins."""
        result = RankedChoiceService().run_instant_runoff(two_candidate_ballot, ranked("A", "B"))

        assert result.rounds[0].eliminated == "A"
        assert result.winner == "B"
        assert result.outcome is RunoffOutcome.MAJORITY_FOUND

    def test_no_votes_no_winner(self, two_candidate_ballot: Ballot) -> None:
        result = RankedChoiceService().run_instant_runoff(two_candidate_ballot, [])

        assert result.winner is None
        assert result.rounds == ()
        assert result.is_tied is False
        assert result.outcome is RunoffOutcome.EXHAUSTED

    def test_zero_margin_allows_full_elimination(self, three_candidate_ballot: Ballot) -> None:
        """The bound never cuts short a runoff that eliminates one per round."""
        service = RankedChoiceService(round_margin=0)
        votes = ranked("A", "B", "C", "A", "B", "C")

        result = service.run_instant_runoff(three_candidate_ballot, votes)

        assert result.winner == "C"
        assert [r.eliminated for r in result.rounds] == ["A", "B", None]

    def test_single_candidate_ballot(self, approval_ballot: Ballot) -> None:
        result = RankedChoiceService().run_instant_runoff(approval_ballot, ranked("T", "T"))

        assert result.winner == "T"
        assert result.rounds[0].vote_counts == {"T": 2}

    def test_deterministic(self, three_candidate_ballot: Ballot) -> None:
        votes = ranked("A", "B", "CA", "CA", "BC", "AB")
        service = RankedChoiceService()

        assert service.run_instant_runoff(three_candidate_ballot, votes) == (
            service.run_instant_runoff(three_candidate_ballot, votes)
        )

    def test_elimination_logged(self, three_candidate_ballot: Ballot) -> None:
        with capture_logs() as cap_logs:
            RankedChoiceService().run_instant_runoff(
                three_candidate_ballot, ranked("A", "B", "CA", "CA")
            )

        eliminated = [e for e in cap_logs if e["event"] == "runoff_candidate_eliminated"]
        assert eliminated[0]["candidate_id"] == "A"
        assert eliminated[0]["round"] == 1


class TestTallyTimeValidation:
    """Tests for rankings re-checked at tally time."""

    def test_foreign_candidate_reports_index(self, three_candidate_ballot: Ballot) -> None:
        votes = ranked("A", "B", "AZ")

        with pytest.raises(InvalidRankingError) as exc_info:
            RankedChoiceService().run_instant_runoff(three_candidate_ballot, votes)

        assert exc_info.value.code is RankingErrorCode.FOREIGN_CANDIDATE
        assert exc_info.value.vote_index == 2
        assert exc_info.value.candidate_id == "Z"

    def test_duplicate_candidate_reports_index(self, board_ballot: Ballot) -> None:
        with pytest.raises(InvalidRankingError) as exc_info:
            RankedChoiceService().score_multi_seat(board_ballot, ranked("ABA"))

        assert exc_info.value.code is RankingErrorCode.DUPLICATE_CANDIDATE
        assert exc_info.value.vote_index == 0

    def test_non_ranked_payload_rejected(self, three_candidate_ballot: Ballot) -> None:
        with pytest.raises(InvalidRankingError) as exc_info:
            RankedChoiceService().run_instant_runoff(
                three_candidate_ballot, [Ranked(("A",)), Yes()]
            )

        assert exc_info.value.code is RankingErrorCode.PAYLOAD_KIND_MISMATCH
        assert exc_info.value.vote_index == 1

    def test_referendum_ballot_rejected(self, referendum_ballot: Ballot) -> None:
        """A ranked tally over a ballot without candidates is a structural error."""
        with pytest.raises(EmptyBallotError):
            RankedChoiceService().tally(referendum_ballot, [])


class TestMultiSeatScoring:
    """Tests for multi-seat positional scoring."""

    def test_tie_at_top_both_win(self, board_ballot: Ballot) -> None:
        """[A,B,C], [B,A,C]: A=5, B=5, C=2; A and B win and are tied."""
        result = RankedChoiceService().score_multi_seat(board_ballot, ranked("ABC", "BAC"))

        scores = {s.candidate_id: s for s in result.standings}
        assert (scores["A"].score, scores["B"].score, scores["C"].score) == (5, 5, 2)
        assert scores["A"].is_winner and scores["B"].is_winner
        assert scores["A"].is_tied and scores["B"].is_tied
        assert not scores["C"].is_winner and not scores["C"].is_tied
        assert result.requires_adjudication is False
        assert [w.candidate_id for w in result.winners] == ["A", "B"]

    def test_tie_straddling_cutoff_requires_adjudication(self, board_ballot: Ballot) -> None:
        """B and C share the score at the second seat; manual resolution needed."""
        result = RankedChoiceService().score_multi_seat(
            board_ballot, ranked("ABC", "ACB", "A")
        )

        scores = {s.candidate_id: s for s in result.standings}
        assert scores["A"].score == 9
        assert scores["B"].score == scores["C"].score == 3
        assert scores["B"].is_tied and scores["C"].is_tied
        assert not scores["A"].is_tied
        assert result.requires_adjudication is True
        # Ordering falls back to name, so B (Bo) holds the nominal seat
        assert [s.candidate_id for s in result.standings] == ["A", "B", "C"]

    def test_first_choice_breaks_score_tie(self) -> None:
        ballot = Ballot(
            id="b",
            kind=BallotKind.MULTI_SEAT,
            candidates=(Candidate("X", "Xi"), Candidate("Y", "Yu"), Candidate("W", "Wu")),
            seats_available=1,
        )

        # X and Y both score 4; only X has a first choice
        result = RankedChoiceService().score_multi_seat(ballot, ranked("XY", "WYX"))

        scores = {s.candidate_id: s.score for s in result.standings}
        assert scores == {"X": 4, "Y": 4, "W": 3}
        assert result.standings[0].candidate_id == "X"
        assert result.requires_adjudication is True

    def test_unranked_candidates_score_zero_and_never_win(self) -> None:
        ballot = Ballot(
            id="b",
            kind=BallotKind.MULTI_SEAT,
            candidates=(Candidate("A", "A"), Candidate("B", "B"), Candidate("C", "C")),
            seats_available=2,
        )

        result = RankedChoiceService().score_multi_seat(ballot, ranked("A"))

        scores = {s.candidate_id: s for s in result.standings}
        assert scores["A"].is_winner
        assert not scores["B"].is_winner and not scores["C"].is_winner
        assert scores["B"].is_tied and scores["C"].is_tied
        assert result.requires_adjudication is True

    def test_seat_without_scoring_candidate_requires_adjudication(self) -> None:
        """A seat nobody can fill is flagged even when no tie is involved."""
        ballot = Ballot(
            id="b",
            kind=BallotKind.MULTI_SEAT,
            candidates=(Candidate("A", "A"), Candidate("B", "B")),
            seats_available=2,
        )

        result = RankedChoiceService().score_multi_seat(ballot, ranked("A"))

        scores = {s.candidate_id: s for s in result.standings}
        assert [w.candidate_id for w in result.winners] == ["A"]
        assert scores["B"].score == 0
        assert not scores["B"].is_winner and not scores["B"].is_tied
        assert result.requires_adjudication is True

    def test_first_choice_counts(self, board_ballot: Ballot) -> None:
        result = RankedChoiceService().score_multi_seat(
            board_ballot, ranked("ABC", "BAC", "BC")
        )

        first = {s.candidate_id: s.first_choice_votes for s in result.standings}
        assert first == {"A": 1, "B": 2, "C": 0}
        assert result.total_votes == 3


class TestDescribeRound:
    """Tests for human-readable round descriptions."""

    def test_round_with_elimination(self) -> None:
        line = describe_round(
            RoundResult(1, {"A": 1, "B": 1, "C": 2}, 4, "A"),
            {"A": "Ada", "B": "Bo", "C": "Cy"},
        )

        assert line == "Round 1: Ada: 1, Bo: 1, Cy: 2. Eliminated: Ada"

    def test_final_round(self) -> None:
        line = describe_round(RoundResult(2, {"B": 1, "C": 2}, 3), {"B": "Bo", "C": "Cy"})

        assert line == "Round 2 (Final): Bo: 1, Cy: 2"

    def test_unknown_name(self) -> None:
        assert describe_round(RoundResult(1, {"Q": 1}, 1), {}) == "Round 1 (Final): Unknown: 1"

    def test_describe_result(self, three_candidate_ballot: Ballot) -> None:
        service = RankedChoiceService()
        result = service.run_instant_runoff(three_candidate_ballot, ranked("A", "B", "CA", "CA"))

        details = service.describe(result, three_candidate_ballot.candidate_names())

        assert details.description == (
            "Round 1: Ada: 1, Bo: 1, Cy: 2. Eliminated: Ada",
            "Round 2 (Final): Bo: 1, Cy: 2",
        )
        assert details.outcome is RunoffOutcome.MAJORITY_FOUND


class TestRankedChoiceServiceConfig:
    """Tests for service configuration."""

    def test_from_config(self) -> None:
        service = RankedChoiceService.from_config(EngineConfig(runoff_round_margin=2))

        assert service.round_margin == 2

    def test_negative_margin_rejected(self) -> None:
        with pytest.raises(ValueError):
            RankedChoiceService(round_margin=-1)
