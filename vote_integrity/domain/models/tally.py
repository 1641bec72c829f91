"""Tally result models.

Tallies are computed fresh from vote records and never persisted as
authoritative state; the persisted record is the vote set, not the tally.
Ties are first-class result states (is_tied), never errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

_TWO_PLACES = Decimal("0.01")


def percentage(part: int, whole: int) -> float:
    """Return part/whole as a percentage rounded to 2 decimal places.

    Rounds half away from zero. Returns 0.0 when whole is zero.

    Example:
        >>> percentage(5, 7)
        71.43
    """
    if whole <= 0:
        return 0.0
    value = Decimal(part) * 100 / Decimal(whole)
    return float(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


class RunoffOutcome(str, Enum):
    """Terminal state of an instant-runoff tally.

    Values:
        MAJORITY_FOUND: A candidate reached floor(active/2) + 1.
        SINGLE_REMAINS: Every other candidate was eliminated.
        EXHAUSTED: No winner (no votes, or the round safety bound tripped).
    """

    MAJORITY_FOUND = "majority_found"
    SINGLE_REMAINS = "single_remains"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RoundResult:
    """One instant-runoff round, kept for auditability and export.

    Attributes:
        round: 1-based round number.
        vote_counts: Active candidate id -> votes this round.
        total_votes: Non-exhausted votes counted this round.
        eliminated: Candidate eliminated at the end of the round, if any.
    """

    round: int
    vote_counts: dict[str, int]
    total_votes: int
    eliminated: str | None = None


@dataclass(frozen=True)
class RankedChoiceResult:
    """Outcome of a single-seat instant-runoff tally.

    Attributes:
        winner: Winning candidate id (nominal winner when tied), or None.
        rounds: Round-by-round trace.
        final_counts: Vote counts of the last round.
        total_votes: Number of votes submitted, exhausted or not.
        is_tied: True when the result must be surfaced as a tie.
        outcome: Terminal state reached.
    """

    winner: str | None
    rounds: tuple[RoundResult, ...]
    final_counts: dict[str, int]
    total_votes: int
    is_tied: bool
    outcome: RunoffOutcome

    @property
    def first_choice_counts(self) -> dict[str, int]:
        if not self.rounds:
            return {}
        return dict(self.rounds[0].vote_counts)

    @property
    def final_round_total(self) -> int:
        if not self.rounds:
            return 0
        return self.rounds[-1].total_votes


@dataclass(frozen=True)
class CandidateScore:
    """Standing of one candidate in a multi-seat tally.

    Attributes:
        candidate_id: Candidate identifier.
        name: Display name.
        score: Sum of (candidate_count - rank_index) over all rankings.
        first_choice_votes: Number of rankings listing this candidate first.
        is_winner: Within the seats available.
        is_tied: Shares its score with another candidate at or above the cutoff.
    """

    candidate_id: str
    name: str
    score: int
    first_choice_votes: int
    is_winner: bool
    is_tied: bool


@dataclass(frozen=True)
class MultiSeatResult:
    """Outcome of a multi-seat positional-scoring tally.

    Attributes:
        seats_available: Seats being filled.
        standings: Candidates in final order.
        total_votes: Number of votes tallied.
        requires_adjudication: True when a score tie straddles the cutoff
            or a seat is left unfilled because the cutoff score is 0; the
            caller must flag it for manual resolution.
    """

    seats_available: int
    standings: tuple[CandidateScore, ...]
    total_votes: int
    requires_adjudication: bool

    @property
    def winners(self) -> tuple[CandidateScore, ...]:
        return tuple(s for s in self.standings if s.is_winner)


@dataclass(frozen=True)
class ReferendumResult:
    """Outcome of a referendum or approval tally.

    Attributes:
        yes: YES (or APPROVE) votes.
        no: NO (or OPPOSE) votes.
        abstain: Abstentions, counted in total_votes only.
        total_votes: All votes on the ballot.
        yes_percentage: yes / total_votes, 2 decimal places.
        no_percentage: no / total_votes, 2 decimal places.
        passed: yes > no.
        is_tied: yes == no and total_votes > 0.
        yes_label: "YES" or "APPROVE".
        no_label: "NO" or "OPPOSE".
    """

    yes: int
    no: int
    abstain: int
    total_votes: int
    yes_percentage: float
    no_percentage: float
    passed: bool
    is_tied: bool
    yes_label: str = "YES"
    no_label: str = "NO"


@dataclass(frozen=True)
class CandidateResult:
    """Per-candidate line of a ballot result.

    Attributes:
        candidate_id: Candidate identifier.
        name: Display name.
        first_choice_votes: Round-one (first preference) votes.
        final_round_votes: Votes in the deciding round (single-seat only).
        percentage: Share of the deciding round (single-seat) or of all
            votes by first choice (multi-seat).
        is_winner: Candidate won a seat.
        is_tied: Candidate is part of a tie that must be rendered.
        score: Positional score (multi-seat only).
    """

    candidate_id: str
    name: str
    first_choice_votes: int
    final_round_votes: int | None
    percentage: float
    is_winner: bool
    is_tied: bool
    score: int | None = None
