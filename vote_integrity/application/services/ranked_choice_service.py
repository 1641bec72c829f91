"""Ranked-choice tally service (instant runoff and multi-seat scoring).

Single-seat ballots use instant runoff:
1. Every vote counts for its highest-ranked still-active candidate; votes
   with no active choice left are exhausted and drop out of the round total.
2. A candidate with at least floor(round_total / 2) + 1 votes wins.
3. Otherwise one candidate with the fewest votes is eliminated. Among tied
   lowest candidates the lexically smallest id goes first.
4. Rounds are capped at candidate_count + round_margin; hitting the cap
   ends the tally as EXHAUSTED with no winner.

Multi-seat ballots use positional scoring: a candidate ranked at position p
(0-based) among n ballot candidates earns n - p points. Candidates are
ordered by score, then first-choice votes, then name, then id. Ties at or
above the cutoff are flagged, never resolved. Zero-score candidates never
win a seat; a seat left empty that way is flagged for adjudication.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from vote_integrity.application.services.base import LoggingMixin
from vote_integrity.config.engine_config import DEFAULT_RUNOFF_ROUND_MARGIN, EngineConfig
from vote_integrity.domain.errors.structural import (
    EmptyBallotError,
    InvalidRankingError,
    RankingErrorCode,
)
from vote_integrity.domain.models.ballot import Ballot, BallotKind
from vote_integrity.domain.models.results import RankedChoiceDetails
from vote_integrity.domain.models.tally import (
    CandidateScore,
    MultiSeatResult,
    RankedChoiceResult,
    RoundResult,
    RunoffOutcome,
)
from vote_integrity.domain.models.vote import Ranked, VotePayload
from vote_integrity.domain.services.ranking_validator import validate_ranking

UNKNOWN_CANDIDATE_NAME = "Unknown"


def describe_round(round_result: RoundResult, candidate_names: Mapping[str, str]) -> str:
    """Render one runoff round as a human-readable line.

    Example:
        >>> describe_round(RoundResult(1, {"a": 3, "b": 2}, 5, "b"), {"a": "Ada", "b": "Bo"})
        'Round 1: Ada: 3, Bo: 2. Eliminated: Bo'
    """
    counts = ", ".join(
        f"{candidate_names.get(cid, UNKNOWN_CANDIDATE_NAME)}: {count}"
        for cid, count in round_result.vote_counts.items()
    )
    if round_result.eliminated is not None:
        eliminated = candidate_names.get(round_result.eliminated, UNKNOWN_CANDIDATE_NAME)
        return f"Round {round_result.round}: {counts}. Eliminated: {eliminated}"
    return f"Round {round_result.round} (Final): {counts}"


class RankedChoiceService(LoggingMixin):
    """Tallies SINGLE_SEAT and MULTI_SEAT ballots from ranked votes.

    Stateless apart from the configured round margin, so ballots may be
    tallied concurrently with one shared instance.
    """

    def __init__(self, round_margin: int = DEFAULT_RUNOFF_ROUND_MARGIN) -> None:
        if round_margin < 0:
            raise ValueError(f"round_margin must be >= 0, got {round_margin}")
        self._round_margin = round_margin
        self._init_logger(component="tally")

    @classmethod
    def from_config(cls, config: EngineConfig) -> RankedChoiceService:
        return cls(round_margin=config.runoff_round_margin)

    @property
    def round_margin(self) -> int:
        return self._round_margin

    def _rankings_for(
        self, ballot: Ballot, votes: Sequence[VotePayload]
    ) -> list[tuple[str, ...]]:
        """Re-check every vote against the ballot and extract its ranking.

        Raises:
            EmptyBallotError: If the ballot has no candidates.
            InvalidRankingError: Tagged with the position of the bad vote.
        """
        if not ballot.candidates:
            raise EmptyBallotError(ballot.id)

        candidate_ids = frozenset(ballot.candidate_ids)
        rankings: list[tuple[str, ...]] = []
        for index, payload in enumerate(votes):
            if not isinstance(payload, Ranked):
                raise InvalidRankingError(
                    RankingErrorCode.PAYLOAD_KIND_MISMATCH, ballot.id, vote_index=index
                )
            try:
                validate_ranking(ballot.id, payload, candidate_ids)
            except InvalidRankingError as exc:
                self._log_operation("validate_votes", ballot_id=ballot.id).warning(
                    "invalid_ranking_rejected",
                    code=exc.code.value,
                    vote_index=index,
                )
                raise exc.at_index(index) from exc
            rankings.append(payload.candidate_ids)
        return rankings

    def run_instant_runoff(
        self, ballot: Ballot, votes: Sequence[VotePayload]
    ) -> RankedChoiceResult:
        """Run instant runoff for a single-seat ballot.

        Args:
            ballot: A candidate ballot.
            votes: Ranked payloads cast on the ballot.

        Returns:
            The result with the full round trace. With no votes there is no
            winner and no rounds.

        Raises:
            EmptyBallotError: If the ballot has no candidates.
            InvalidRankingError: If a vote is not a valid ranking.
        """
        rankings = self._rankings_for(ballot, votes)
        log = self._log_operation(
            "run_instant_runoff",
            ballot_id=ballot.id,
            candidate_count=len(ballot.candidates),
            vote_count=len(rankings),
        )

        if not rankings:
            log.info("runoff_no_votes")
            return RankedChoiceResult(
                winner=None,
                rounds=(),
                final_counts={},
                total_votes=0,
                is_tied=False,
                outcome=RunoffOutcome.EXHAUSTED,
            )

        active = list(ballot.candidate_ids)
        max_rounds = len(active) + self._round_margin
        rounds: list[RoundResult] = []

        def finish(
            winner: str | None, counts: dict[str, int], is_tied: bool, outcome: RunoffOutcome
        ) -> RankedChoiceResult:
            return RankedChoiceResult(
                winner=winner,
                rounds=tuple(rounds),
                final_counts=counts,
                total_votes=len(rankings),
                is_tied=is_tied,
                outcome=outcome,
            )

        round_number = 0
        counts: dict[str, int] = {}
        while True:
            round_number += 1
            if round_number > max_rounds:
                log.error("runoff_round_limit_exceeded", max_rounds=max_rounds)
                return finish(None, counts, False, RunoffOutcome.EXHAUSTED)

            active_set = set(active)
            counts = {cid: 0 for cid in active}
            for ranking in rankings:
                choice = next((cid for cid in ranking if cid in active_set), None)
                if choice is not None:
                    counts[choice] += 1
            round_total = sum(counts.values())

            if round_total == 0 and len(active) > 1:
                rounds.append(RoundResult(round_number, counts, round_total))
                log.warning("runoff_votes_exhausted", round=round_number)
                return finish(None, counts, False, RunoffOutcome.EXHAUSTED)

            majority = round_total // 2 + 1
            leaders = [cid for cid in active if counts[cid] >= majority]
            if leaders:
                rounds.append(RoundResult(round_number, counts, round_total))
                log.info(
                    "runoff_majority_found",
                    round=round_number,
                    winner=leaders[0],
                    is_tied=len(leaders) > 1,
                )
                return finish(
                    leaders[0], counts, len(leaders) > 1, RunoffOutcome.MAJORITY_FOUND
                )

            if len(active) == 1:
                rounds.append(RoundResult(round_number, counts, round_total))
                log.info("runoff_single_remains", round=round_number, winner=active[0])
                return finish(active[0], counts, False, RunoffOutcome.SINGLE_REMAINS)

            fewest = min(counts.values())
            eliminated = min(cid for cid in active if counts[cid] == fewest)
            rounds.append(RoundResult(round_number, counts, round_total, eliminated))
            log.debug(
                "runoff_candidate_eliminated",
                round=round_number,
                candidate_id=eliminated,
                votes=fewest,
            )
            active.remove(eliminated)

    def score_multi_seat(
        self, ballot: Ballot, votes: Sequence[VotePayload]
    ) -> MultiSeatResult:
        """Score a multi-seat ballot by rank position.

        Args:
            ballot: A candidate ballot; its seats_available winners are taken.
            votes: Ranked payloads cast on the ballot.

        Raises:
            EmptyBallotError: If the ballot has no candidates.
            InvalidRankingError: If a vote is not a valid ranking.
        """
        rankings = self._rankings_for(ballot, votes)
        candidate_count = len(ballot.candidates)
        seats = ballot.seats_available

        scores = {cid: 0 for cid in ballot.candidate_ids}
        first_choices = {cid: 0 for cid in ballot.candidate_ids}
        for ranking in rankings:
            for position, cid in enumerate(ranking):
                scores[cid] += candidate_count - position
            first_choices[ranking[0]] += 1

        ordered = sorted(
            ballot.candidates,
            key=lambda c: (-scores[c.id], -first_choices[c.id], c.name, c.id),
        )
        cutoff_score = scores[ordered[seats - 1].id]
        score_frequency: dict[int, int] = {}
        for cid, score in scores.items():
            score_frequency[score] = score_frequency.get(score, 0) + 1

        standings = tuple(
            CandidateScore(
                candidate_id=c.id,
                name=c.name,
                score=scores[c.id],
                first_choice_votes=first_choices[c.id],
                is_winner=index < seats and scores[c.id] > 0,
                is_tied=(
                    scores[c.id] >= cutoff_score and score_frequency[scores[c.id]] > 1
                ),
            )
            for index, c in enumerate(ordered)
        )

        # A tie straddles the cutoff when the first loser matches the last winner.
        # A zero cutoff score means at least one seat has no eligible winner.
        requires_adjudication = cutoff_score == 0 or (
            len(ordered) > seats and scores[ordered[seats].id] == cutoff_score
        )

        log = self._log_operation(
            "score_multi_seat", ballot_id=ballot.id, seats_available=seats
        )
        if requires_adjudication:
            log.warning("multi_seat_requires_adjudication", cutoff_score=cutoff_score)
        log.info("multi_seat_scored", vote_count=len(rankings))

        return MultiSeatResult(
            seats_available=seats,
            standings=standings,
            total_votes=len(rankings),
            requires_adjudication=requires_adjudication,
        )

    def describe(
        self, result: RankedChoiceResult, candidate_names: Mapping[str, str]
    ) -> RankedChoiceDetails:
        """Build the exportable round-by-round trace for a runoff result."""
        return RankedChoiceDetails(
            rounds=result.rounds,
            description=tuple(describe_round(r, candidate_names) for r in result.rounds),
            outcome=result.outcome,
        )

    def tally(
        self, ballot: Ballot, votes: Sequence[VotePayload]
    ) -> RankedChoiceResult | MultiSeatResult:
        """Dispatch on ballot kind.

        Raises:
            EmptyBallotError: For REFERENDUM ballots, which have no candidates.
        """
        if ballot.kind is BallotKind.SINGLE_SEAT:
            return self.run_instant_runoff(ballot, votes)
        if ballot.kind is BallotKind.MULTI_SEAT:
            return self.score_multi_seat(ballot, votes)
        raise EmptyBallotError(ballot.id)
