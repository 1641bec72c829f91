"""Vote payload validation against a ballot.

Used at cast time to reject malformed votes before they are hashed, and
again by the tally services so a vote that slipped past the cast-time check
is reported as a structural error instead of silently skewing a count.

Rules:
- REFERENDUM ballots accept Yes, No, Abstain
- Approval ballots (single seat, one candidate) accept Yes, No, Abstain or Ranked
- Candidate ballots otherwise accept Ranked only
- Rankings are non-empty, contain no duplicates and only ballot candidates
"""

from __future__ import annotations

from vote_integrity.domain.errors.structural import InvalidRankingError, RankingErrorCode
from vote_integrity.domain.models.ballot import Ballot, BallotKind
from vote_integrity.domain.models.vote import Abstain, No, Ranked, VotePayload, Yes


def validate_ranking(ballot_id: str, ranking: Ranked, candidate_ids: frozenset[str]) -> None:
    """Validate one ranked payload against a candidate set.

    Raises:
        InvalidRankingError: EMPTY_RANKING, DUPLICATE_CANDIDATE or
            FOREIGN_CANDIDATE.
    """
    if not ranking.candidate_ids:
        raise InvalidRankingError(RankingErrorCode.EMPTY_RANKING, ballot_id)

    seen: set[str] = set()
    for candidate_id in ranking.candidate_ids:
        if candidate_id not in candidate_ids:
            raise InvalidRankingError(
                RankingErrorCode.FOREIGN_CANDIDATE, ballot_id, candidate_id=candidate_id
            )
        if candidate_id in seen:
            raise InvalidRankingError(
                RankingErrorCode.DUPLICATE_CANDIDATE, ballot_id, candidate_id=candidate_id
            )
        seen.add(candidate_id)


def validate_vote(ballot: Ballot, payload: VotePayload) -> None:
    """Validate a payload for a ballot.

    Args:
        ballot: The ballot the vote is cast on.
        payload: The voter's choice.

    Raises:
        InvalidRankingError: If the payload is not acceptable for the ballot.
        TypeError: If payload is not a VotePayload member.
    """
    if isinstance(payload, (Yes, No, Abstain)):
        if ballot.kind is BallotKind.REFERENDUM or ballot.is_approval:
            return
        raise InvalidRankingError(RankingErrorCode.PAYLOAD_KIND_MISMATCH, ballot.id)

    if isinstance(payload, Ranked):
        if ballot.kind is BallotKind.REFERENDUM:
            raise InvalidRankingError(RankingErrorCode.PAYLOAD_KIND_MISMATCH, ballot.id)
        validate_ranking(ballot.id, payload, frozenset(ballot.candidate_ids))
        return

    raise TypeError(f"Unsupported vote payload: {type(payload).__name__}")
