"""Vote payloads and vote records.

A vote payload is a closed sum type: Yes, No, Abstain (referendum and
approval ballots) or Ranked (candidate ballots). Consumers match on the
concrete class and treat anything else as an error, so an unrecognized
payload shape can never fall through to a default branch.

A VoteRecord is never linked to a voter identity. The voter identifier is
only an input to the vote hash at cast time and is not stored here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union


@dataclass(frozen=True)
class Yes:
    """Referendum YES (or APPROVE on an approval ballot)."""

    def to_wire(self) -> dict[str, Any]:
        return {"type": "YES"}


@dataclass(frozen=True)
class No:
    """Referendum NO (or OPPOSE on an approval ballot)."""

    def to_wire(self) -> dict[str, Any]:
        return {"type": "NO"}


@dataclass(frozen=True)
class Abstain:
    """Counted toward turnout and quorum, never toward YES or NO."""

    def to_wire(self) -> dict[str, Any]:
        return {"type": "ABSTAIN"}


@dataclass(frozen=True)
class Ranked:
    """Ordered candidate preferences, most preferred first.

    A strict subset of the ballot's candidates is allowed and means
    "no preference beyond this point".

    Attributes:
        candidate_ids: Candidate ids in preference order.
    """

    candidate_ids: tuple[str, ...]

    def __post_init__(self) -> None:
        # A bare string would otherwise split into single-character ids
        if isinstance(self.candidate_ids, str):
            raise TypeError("candidate_ids must be a sequence of ids, not a string")
        if not isinstance(self.candidate_ids, tuple):
            object.__setattr__(self, "candidate_ids", tuple(self.candidate_ids))

    def to_wire(self) -> dict[str, Any]:
        return {"type": "RANKED", "rankings": list(self.candidate_ids)}


VotePayload = Union[Yes, No, Abstain, Ranked]


def payload_from_wire(data: dict[str, Any]) -> VotePayload:
    """Parse a stored vote payload ({"type": ...}) into its sum-type member.

    Args:
        data: Payload mapping as persisted by the vote-casting workflow.

    Returns:
        The matching payload instance.

    Raises:
        ValueError: If the type tag is unknown or rankings are malformed.
    """
    kind = data.get("type")
    if kind == "YES":
        return Yes()
    if kind == "NO":
        return No()
    if kind == "ABSTAIN":
        return Abstain()
    if kind == "RANKED":
        rankings = data.get("rankings")
        if not isinstance(rankings, list) or not all(isinstance(r, str) for r in rankings):
            raise ValueError("RANKED payload requires a list of candidate id strings")
        return Ranked(tuple(rankings))
    raise ValueError(f"Unknown vote payload type: {kind!r}")


@dataclass(frozen=True)
class VoteRecord:
    """A cast vote as supplied by the persistence layer.

    vote_hash and timestamp are stamped once at cast time and never change.

    Attributes:
        election_id: Election the vote belongs to.
        ballot_id: Ballot the vote was cast on.
        payload: What the voter chose.
        timestamp: When the vote was cast.
        vote_hash: HMAC receipt computed at cast time.
    """

    election_id: str
    ballot_id: str
    payload: VotePayload
    timestamp: datetime
    vote_hash: str
