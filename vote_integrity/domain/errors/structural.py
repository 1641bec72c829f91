"""Structural violation errors.

Structural violations are rejected synchronously with a specific error kind.
The caller decides whether to drop the offending input or abort the run.
"""

from __future__ import annotations

from enum import Enum

from vote_integrity.domain.exceptions import VoteIntegrityError


class StructuralViolationError(VoteIntegrityError):
    """Base class for inputs that break a structural invariant."""

    pass


class InvalidBallotError(StructuralViolationError):
    """Raised when a ballot definition violates its invariants.

    Attributes:
        ballot_id: ID of the offending ballot.
    """

    def __init__(self, ballot_id: str, reason: str) -> None:
        """Initialize the error.

        Args:
            ballot_id: ID of the offending ballot.
            reason: What is wrong with the ballot.
        """
        self.ballot_id = ballot_id
        super().__init__(f"Invalid ballot {ballot_id}: {reason}")


class EmptyBallotError(InvalidBallotError):
    """Raised when a candidate ballot has zero candidates."""

    def __init__(self, ballot_id: str = "") -> None:
        """Initialize the error.

        Args:
            ballot_id: ID of the offending ballot, if known.
        """
        super().__init__(ballot_id or "<unknown>", "candidate ballot has no candidates")


class RankingErrorCode(str, Enum):
    """Reasons a vote payload is rejected for a ballot.

    Values:
        DUPLICATE_CANDIDATE: The same candidate appears twice in one ranking.
        FOREIGN_CANDIDATE: A ranked candidate does not belong to the ballot.
        EMPTY_RANKING: A ranked payload lists no candidates.
        PAYLOAD_KIND_MISMATCH: Payload kind does not fit the ballot kind.
    """

    DUPLICATE_CANDIDATE = "DUPLICATE_CANDIDATE"
    FOREIGN_CANDIDATE = "FOREIGN_CANDIDATE"
    EMPTY_RANKING = "EMPTY_RANKING"
    PAYLOAD_KIND_MISMATCH = "PAYLOAD_KIND_MISMATCH"


class InvalidRankingError(StructuralViolationError):
    """Raised when a vote payload is not valid for its ballot.

    Attributes:
        code: Machine-readable reason.
        ballot_id: Ballot the vote was cast on.
        candidate_id: Candidate involved, when applicable.
        vote_index: Position of the vote in the tallied list, when raised
            during a tally rather than at cast time.
    """

    def __init__(
        self,
        code: RankingErrorCode,
        ballot_id: str,
        candidate_id: str | None = None,
        vote_index: int | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            code: Machine-readable reason.
            ballot_id: Ballot the vote was cast on.
            candidate_id: Candidate involved, when applicable.
            vote_index: Position of the vote in the tallied list.
        """
        self.code = code
        self.ballot_id = ballot_id
        self.candidate_id = candidate_id
        self.vote_index = vote_index

        message = f"{code.value} on ballot {ballot_id}"
        if candidate_id is not None:
            message += f" (candidate {candidate_id})"
        if vote_index is not None:
            message += f" at vote index {vote_index}"
        super().__init__(message)

    def at_index(self, vote_index: int) -> InvalidRankingError:
        """Return a copy of this error tagged with a tally position."""
        return InvalidRankingError(
            self.code,
            self.ballot_id,
            candidate_id=self.candidate_id,
            vote_index=vote_index,
        )


class DelimiterCollisionError(StructuralViolationError):
    """Raised when a hashed identifier contains the field delimiter.

    Attributes:
        field_name: Name of the offending field.
    """

    def __init__(self, field_name: str, delimiter: str) -> None:
        """Initialize the error.

        Args:
            field_name: Name of the offending field.
            delimiter: The reserved delimiter character.
        """
        self.field_name = field_name
        super().__init__(
            f"Field {field_name} must not contain the hash delimiter {delimiter!r}"
        )
