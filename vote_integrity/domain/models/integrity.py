"""Integrity check results.

Integrity mismatches are results, not exceptions: they are always reported
to the caller and never silently corrected.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IntegrityStatus(str, Enum):
    """Outcome of comparing a stored value against a recomputation.

    Values:
        VERIFIED: Stored and recomputed values are equal.
        TAMPER_SUSPECTED: They differ; the stored data may have been edited.
    """

    VERIFIED = "verified"
    TAMPER_SUSPECTED = "tamper_suspected"


@dataclass(frozen=True)
class IntegrityCheck:
    """Result of re-deriving a vote hash and comparing it to storage.

    Attributes:
        status: VERIFIED or TAMPER_SUSPECTED.
        stored_hash: Hash read from storage.
        ballot_id: Ballot of the checked vote.
    """

    status: IntegrityStatus
    stored_hash: str
    ballot_id: str

    @property
    def is_verified(self) -> bool:
        return self.status is IntegrityStatus.VERIFIED
