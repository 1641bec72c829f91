"""Quorum and results aggregator service.

Folds ballot tallies together with eligible-voter counts and per-kind
quorum percentages into BallotResult and ElectionResults structures for
the presentation and export layer.

Scope resolution (whole election vs. a restricted sub-population such as a
college) is the caller's job: eligible counts per scope are passed in.
Every function here is pure. The same inputs always give the same results.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from fractions import Fraction

from vote_integrity.application.services.base import LoggingMixin
from vote_integrity.application.services.ranked_choice_service import RankedChoiceService
from vote_integrity.application.services.referendum_tally_service import (
    ReferendumTallyService,
    is_approval_vote_set,
)
from vote_integrity.config.engine_config import (
    DEFAULT_QUORUM_SETTINGS,
    EngineConfig,
    validate_quorum_percentage,
)
from vote_integrity.domain.errors.configuration import InvalidQuorumError
from vote_integrity.domain.models.ballot import Ballot, BallotKind
from vote_integrity.domain.models.results import (
    BallotResult,
    ElectionResults,
    QuorumDecision,
    QuorumSettings,
    ResultsSummary,
)
from vote_integrity.domain.models.tally import CandidateResult, percentage
from vote_integrity.domain.models.vote import VotePayload


def decide_quorum(
    total_votes: int, eligible_voters: int, quorum_percentage: float
) -> QuorumDecision:
    """Decide whether a ballot reached quorum.

    threshold = ceil(eligible_voters * quorum_percentage / 100), computed
    exactly so that e.g. 100 eligible at 10% gives 10, not 11.

    Raises:
        InvalidQuorumError: If eligible_voters is negative or the
            percentage is outside [0, 100].
    """
    if eligible_voters < 0:
        raise InvalidQuorumError("eligible_voters", eligible_voters)
    validate_quorum_percentage("quorum_percentage", quorum_percentage)

    threshold = math.ceil(Fraction(eligible_voters) * Fraction(str(quorum_percentage)) / 100)
    return QuorumDecision(
        threshold=threshold,
        reached=total_votes >= threshold,
        eligible_voters=eligible_voters,
        quorum_percentage=quorum_percentage,
        total_votes=total_votes,
    )


def summarize(results: ElectionResults) -> ResultsSummary:
    """Headline counts for an election's results."""
    referendums = [
        b.referendum
        for b in results.ballots
        if b.kind is BallotKind.REFERENDUM and b.referendum is not None
    ]
    return ResultsSummary(
        total_ballots=len(results.ballots),
        ballots_with_ties=sum(1 for b in results.ballots if b.has_tie),
        referendums_count=len(referendums),
        referendums_passed=sum(1 for r in referendums if r.passed),
        voted=results.total_voted,
        eligible=results.total_eligible_voters,
        turnout_percentage=results.turnout_percentage,
    )


class ResultsAggregatorService(LoggingMixin):
    """Produces per-ballot and per-election results with quorum folded in."""

    def __init__(
        self,
        quorum: QuorumSettings = DEFAULT_QUORUM_SETTINGS,
        ranked_choice: RankedChoiceService | None = None,
        referendum: ReferendumTallyService | None = None,
    ) -> None:
        self._quorum = quorum
        self._ranked_choice = ranked_choice or RankedChoiceService()
        self._referendum = referendum or ReferendumTallyService()
        self._init_logger(component="tally")

    @classmethod
    def from_config(cls, config: EngineConfig) -> ResultsAggregatorService:
        return cls(
            quorum=config.quorum,
            ranked_choice=RankedChoiceService.from_config(config),
        )

    def tally_ballot(
        self,
        ballot: Ballot,
        votes: Sequence[VotePayload],
        eligible_voters: int,
    ) -> BallotResult:
        """Tally one ballot and decide its quorum.

        Args:
            ballot: The ballot.
            votes: All payloads cast on it.
            eligible_voters: Eligible voters for the ballot's scope.

        Raises:
            InvalidRankingError: If a vote does not fit the ballot.
            InvalidQuorumError: If eligible_voters is negative.
        """
        quorum = decide_quorum(
            len(votes), eligible_voters, self._quorum.percentage_for(ballot.kind)
        )
        log = self._log_operation("tally_ballot", ballot_id=ballot.id, kind=ballot.kind.value)

        common = dict(
            ballot_id=ballot.id,
            ballot_title=ballot.title,
            kind=ballot.kind,
            scope=ballot.scope,
            seats_available=ballot.seats_available,
            total_votes=len(votes),
            quorum=quorum,
        )

        if ballot.kind is BallotKind.REFERENDUM or is_approval_vote_set(ballot, votes):
            result = BallotResult(**common, referendum=self._referendum.tally(ballot, votes))
        elif ballot.kind is BallotKind.SINGLE_SEAT:
            result = self._single_seat_result(ballot, votes, common)
        elif ballot.kind is BallotKind.MULTI_SEAT:
            result = self._multi_seat_result(ballot, votes, common)
        else:
            raise ValueError(f"Unknown ballot kind: {ballot.kind!r}")

        log.info(
            "ballot_tallied",
            total_votes=len(votes),
            quorum_reached=quorum.reached,
            has_tie=result.has_tie,
        )
        return result

    def _single_seat_result(
        self, ballot: Ballot, votes: Sequence[VotePayload], common: dict
    ) -> BallotResult:
        runoff = self._ranked_choice.run_instant_runoff(ballot, votes)
        first = runoff.first_choice_counts
        final = runoff.final_counts
        final_total = runoff.final_round_total
        winning_count = final.get(runoff.winner) if runoff.winner is not None else None

        candidates = [
            CandidateResult(
                candidate_id=c.id,
                name=c.name,
                first_choice_votes=first.get(c.id, 0),
                final_round_votes=final.get(c.id, 0),
                percentage=percentage(final.get(c.id, 0), final_total),
                is_winner=c.id == runoff.winner,
                is_tied=runoff.is_tied and final.get(c.id) == winning_count,
            )
            for c in ballot.candidates
        ]
        candidates.sort(
            key=lambda r: (-(r.final_round_votes or 0), -r.first_choice_votes, r.name, r.candidate_id)
        )

        return BallotResult(
            **common,
            candidates=tuple(candidates),
            ranked_choice_details=self._ranked_choice.describe(
                runoff, ballot.candidate_names()
            ),
        )

    def _multi_seat_result(
        self, ballot: Ballot, votes: Sequence[VotePayload], common: dict
    ) -> BallotResult:
        scored = self._ranked_choice.score_multi_seat(ballot, votes)
        candidates = tuple(
            CandidateResult(
                candidate_id=s.candidate_id,
                name=s.name,
                first_choice_votes=s.first_choice_votes,
                final_round_votes=None,
                percentage=percentage(s.first_choice_votes, scored.total_votes),
                is_winner=s.is_winner,
                is_tied=s.is_tied,
                score=s.score,
            )
            for s in scored.standings
        )
        return BallotResult(
            **common,
            candidates=candidates,
            requires_adjudication=scored.requires_adjudication,
        )

    def aggregate_election(
        self,
        election_id: str,
        ballots: Sequence[Ballot],
        votes_by_ballot: Mapping[str, Sequence[VotePayload]],
        total_eligible_voters: int,
        total_voted: int,
        scope_eligible_voters: Mapping[str, int] | None = None,
    ) -> ElectionResults:
        """Tally every ballot of an election.

        Args:
            election_id: Election identifier.
            ballots: Ballots in display order.
            votes_by_ballot: Ballot id -> payloads; missing ballots have no votes.
            total_eligible_voters: Eligible voters for unscoped ballots.
            total_voted: Voters who cast at least one ballot.
            scope_eligible_voters: Scope -> eligible voters for scoped
                ballots. An unknown scope has zero eligible voters.

        Raises:
            InvalidQuorumError: If total_eligible_voters is negative.
        """
        if total_eligible_voters < 0:
            raise InvalidQuorumError("total_eligible_voters", total_eligible_voters)
        scope_eligible_voters = scope_eligible_voters or {}

        results = []
        for ballot in ballots:
            if ballot.scope is None:
                eligible = total_eligible_voters
            else:
                eligible = scope_eligible_voters.get(ballot.scope, 0)
            results.append(
                self.tally_ballot(ballot, votes_by_ballot.get(ballot.id, ()), eligible)
            )

        election = ElectionResults(
            election_id=election_id,
            total_eligible_voters=total_eligible_voters,
            total_voted=total_voted,
            turnout_percentage=percentage(total_voted, total_eligible_voters),
            ballots=tuple(results),
        )
        self._log_operation("aggregate_election", election_id=election_id).info(
            "election_aggregated",
            ballot_count=len(results),
            turnout_percentage=election.turnout_percentage,
        )
        return election

    def summarize(self, results: ElectionResults) -> ResultsSummary:
        return summarize(results)
