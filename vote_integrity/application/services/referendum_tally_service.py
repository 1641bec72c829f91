"""Referendum and approval tally service.

Counts YES / NO / ABSTAIN. The same count backs single-candidate approval
ballots, where the labels become APPROVE / OPPOSE.

Percentages are taken over all votes on the ballot, abstentions included,
so yes_percentage + no_percentage can be below 100.
"""

from __future__ import annotations

from collections.abc import Sequence

from vote_integrity.application.services.base import LoggingMixin
from vote_integrity.domain.errors.structural import InvalidRankingError, RankingErrorCode
from vote_integrity.domain.models.ballot import Ballot, BallotKind
from vote_integrity.domain.models.tally import ReferendumResult, percentage
from vote_integrity.domain.models.vote import Abstain, No, Ranked, VotePayload, Yes

APPROVE_LABEL = "APPROVE"
OPPOSE_LABEL = "OPPOSE"


def is_approval_vote_set(ballot: Ballot, votes: Sequence[VotePayload]) -> bool:
    """True when a single-candidate ballot was voted on with Yes/No/Abstain."""
    return ballot.is_approval and all(isinstance(v, (Yes, No, Abstain)) for v in votes)


class ReferendumTallyService(LoggingMixin):
    """Counts referendum and approval ballots."""

    def __init__(self) -> None:
        self._init_logger(component="tally")

    def tally(self, ballot: Ballot, votes: Sequence[VotePayload]) -> ReferendumResult:
        """Count the votes of a REFERENDUM or approval ballot.

        Args:
            ballot: A REFERENDUM ballot, or a single-seat ballot with one
                candidate.
            votes: Yes / No / Abstain payloads.

        Returns:
            passed is yes > no; is_tied is yes == no with at least one vote.

        Raises:
            InvalidRankingError: PAYLOAD_KIND_MISMATCH for a Ranked vote or
                for a ballot that is neither referendum nor approval.
        """
        if ballot.kind is not BallotKind.REFERENDUM and not ballot.is_approval:
            raise InvalidRankingError(RankingErrorCode.PAYLOAD_KIND_MISMATCH, ballot.id)

        yes = no = abstain = 0
        for index, payload in enumerate(votes):
            if isinstance(payload, Yes):
                yes += 1
            elif isinstance(payload, No):
                no += 1
            elif isinstance(payload, Abstain):
                abstain += 1
            elif isinstance(payload, Ranked):
                raise InvalidRankingError(
                    RankingErrorCode.PAYLOAD_KIND_MISMATCH, ballot.id, vote_index=index
                )
            else:
                raise TypeError(f"Unsupported vote payload: {type(payload).__name__}")

        total = yes + no + abstain
        approval = ballot.kind is not BallotKind.REFERENDUM

        result = ReferendumResult(
            yes=yes,
            no=no,
            abstain=abstain,
            total_votes=total,
            yes_percentage=percentage(yes, total),
            no_percentage=percentage(no, total),
            passed=yes > no,
            is_tied=yes == no and total > 0,
            yes_label=APPROVE_LABEL if approval else "YES",
            no_label=OPPOSE_LABEL if approval else "NO",
        )

        self._log_operation("tally", ballot_id=ballot.id).info(
            "referendum_tallied",
            total_votes=total,
            passed=result.passed,
            is_tied=result.is_tied,
        )
        return result
