"""Ballot and candidate domain models.

Ballots are created by an external admin workflow and are immutable once any
vote exists for them. The invariants below are checked at construction so a
tally never runs against a malformed ballot.

Invariants:
- REFERENDUM ballots have no candidates
- SINGLE_SEAT and MULTI_SEAT ballots have at least one candidate
- 1 <= seats_available <= candidate count for candidate ballots
- SINGLE_SEAT ballots fill exactly one seat
- candidate ids are unique within a ballot
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from vote_integrity.domain.errors.structural import EmptyBallotError, InvalidBallotError


class BallotKind(str, Enum):
    """How a ballot is tallied.

    Values:
        SINGLE_SEAT: One winner by instant runoff.
        MULTI_SEAT: Several winners by positional scoring.
        REFERENDUM: YES / NO question without candidates.
    """

    SINGLE_SEAT = "SINGLE_SEAT"
    MULTI_SEAT = "MULTI_SEAT"
    REFERENDUM = "REFERENDUM"


@dataclass(frozen=True)
class Candidate:
    """A candidate standing on exactly one ballot.

    Attributes:
        id: Unique candidate identifier.
        name: Display name, also the last ordering key for multi-seat results.
    """

    id: str
    name: str


@dataclass(frozen=True)
class Ballot:
    """A single question or race within an election.

    Attributes:
        id: Unique ballot identifier.
        kind: Tally method for this ballot.
        candidates: Ordered candidates (empty for referendums).
        seats_available: Number of winners for candidate ballots.
        scope: Optional sub-population restriction (e.g. a college). The
            eligible-voter count for a scope is supplied by the caller.
        title: Display title carried through to results.
    """

    id: str
    kind: BallotKind
    candidates: tuple[Candidate, ...] = ()
    seats_available: int = 1
    scope: str | None = None
    title: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        """Validate ballot invariants.

        Raises:
            EmptyBallotError: If a candidate ballot has no candidates.
            InvalidBallotError: For any other invariant violation.
        """
        # Normalize lists passed by callers into tuples
        if not isinstance(self.candidates, tuple):
            object.__setattr__(self, "candidates", tuple(self.candidates))

        if self.kind is BallotKind.REFERENDUM:
            if self.candidates:
                raise InvalidBallotError(self.id, "referendum ballots have no candidates")
            return

        if not self.candidates:
            raise EmptyBallotError(self.id)

        ids = [c.id for c in self.candidates]
        if len(set(ids)) != len(ids):
            raise InvalidBallotError(self.id, "candidate ids must be unique")

        if self.seats_available < 1:
            raise InvalidBallotError(self.id, "seats_available must be at least 1")
        if self.seats_available > len(self.candidates):
            raise InvalidBallotError(
                self.id,
                f"seats_available ({self.seats_available}) exceeds "
                f"candidate count ({len(self.candidates)})",
            )
        if self.kind is BallotKind.SINGLE_SEAT and self.seats_available != 1:
            raise InvalidBallotError(self.id, "single-seat ballots fill exactly one seat")

    @property
    def candidate_ids(self) -> tuple[str, ...]:
        """Candidate ids in ballot order."""
        return tuple(c.id for c in self.candidates)

    @property
    def is_approval(self) -> bool:
        """True for a single-seat ballot with one candidate (APPROVE/OPPOSE)."""
        return self.kind is BallotKind.SINGLE_SEAT and len(self.candidates) == 1

    def candidate_names(self) -> dict[str, str]:
        """Map candidate id to display name."""
        return {c.id: c.name for c in self.candidates}
