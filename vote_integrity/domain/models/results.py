"""Ballot and election result models (quorum folded in).

All of these are derived values: same inputs always produce the same
results, and nothing here is stored.
"""

from __future__ import annotations

from dataclasses import dataclass

from vote_integrity.domain.models.ballot import BallotKind
from vote_integrity.domain.models.tally import (
    CandidateResult,
    ReferendumResult,
    RoundResult,
    RunoffOutcome,
)


@dataclass(frozen=True)
class QuorumSettings:
    """Quorum percentage per ballot kind.

    Defaults: 10% for executive (single-seat) and director (multi-seat)
    races, 20% for referendums.
    """

    single_seat: float = 10
    multi_seat: float = 10
    referendum: float = 20

    def percentage_for(self, kind: BallotKind) -> float:
        if kind is BallotKind.SINGLE_SEAT:
            return self.single_seat
        if kind is BallotKind.MULTI_SEAT:
            return self.multi_seat
        if kind is BallotKind.REFERENDUM:
            return self.referendum
        raise ValueError(f"Unknown ballot kind: {kind!r}")


@dataclass(frozen=True)
class QuorumDecision:
    """Whether a ballot reached quorum.

    Attributes:
        threshold: ceil(eligible_voters * quorum_percentage / 100).
        reached: total_votes >= threshold.
        eligible_voters: Eligible voters for the ballot's scope.
        quorum_percentage: Percentage applied.
        total_votes: Votes cast on the ballot.
    """

    threshold: int
    reached: bool
    eligible_voters: int
    quorum_percentage: float
    total_votes: int


@dataclass(frozen=True)
class RankedChoiceDetails:
    """Round-by-round trace for ranked-choice export.

    Attributes:
        rounds: Rounds in order.
        description: One human-readable line per round.
        outcome: Terminal runoff state.
    """

    rounds: tuple[RoundResult, ...]
    description: tuple[str, ...]
    outcome: RunoffOutcome


@dataclass(frozen=True)
class BallotResult:
    """Final result for one ballot.

    Exactly one of candidates / referendum is set.
    """

    ballot_id: str
    ballot_title: str
    kind: BallotKind
    scope: str | None
    seats_available: int
    total_votes: int
    quorum: QuorumDecision
    candidates: tuple[CandidateResult, ...] | None = None
    referendum: ReferendumResult | None = None
    ranked_choice_details: RankedChoiceDetails | None = None
    requires_adjudication: bool = False

    @property
    def has_tie(self) -> bool:
        if self.candidates is not None:
            return any(c.is_tied for c in self.candidates)
        if self.referendum is not None:
            return self.referendum.is_tied
        return False

    @property
    def winners(self) -> tuple[CandidateResult, ...]:
        if self.candidates is None:
            return ()
        return tuple(c for c in self.candidates if c.is_winner)


@dataclass(frozen=True)
class ElectionResults:
    """Results for every ballot of an election.

    Attributes:
        election_id: Election identifier.
        total_eligible_voters: Whole-election eligible voters.
        total_voted: Voters who cast at least one ballot.
        turnout_percentage: total_voted / total_eligible_voters, 2 places.
        ballots: Per-ballot results in input order.
    """

    election_id: str
    total_eligible_voters: int
    total_voted: int
    turnout_percentage: float
    ballots: tuple[BallotResult, ...]


@dataclass(frozen=True)
class ResultsSummary:
    """Headline counts for an election's results."""

    total_ballots: int
    ballots_with_ties: int
    referendums_count: int
    referendums_passed: int
    voted: int
    eligible: int
    turnout_percentage: float
