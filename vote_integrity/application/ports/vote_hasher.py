"""Vote hasher port.

Defines the contract the vote-casting and verification workflows depend on
for stamping and re-checking vote hashes.

Developer Golden Rules:
1. DETERMINISM - Same inputs and secret always produce the same hash
2. KEYED - Hashes are HMACs; there is no unkeyed mode
3. CONSTANT TIME - Verification compares digests in constant time
4. NO SECRETS OUT - The secret never appears in any returned value
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from vote_integrity.domain.models.integrity import IntegrityCheck
from vote_integrity.domain.models.vote import VotePayload, VoteRecord


class VoteHasherProtocol(Protocol):
    """Protocol for vote hash computation and verification.

    Methods:
        compute_hash: Stamp a vote at cast time
        verify_hash: Recompute and compare a presented hash
        check_integrity: Compare a stored vote record against a recomputation
    """

    def compute_hash(
        self,
        election_id: str,
        ballot_id: str,
        payload: VotePayload,
        voter_id: str,
        timestamp: datetime,
    ) -> str:
        """Compute the lowercase hex HMAC-SHA256 vote hash."""
        ...

    def verify_hash(
        self,
        vote_hash: str,
        election_id: str,
        ballot_id: str,
        payload: VotePayload,
        voter_id: str,
        timestamp: datetime,
    ) -> bool:
        """Return True if vote_hash matches the recomputed hash."""
        ...

    def check_integrity(self, record: VoteRecord, voter_id: str) -> IntegrityCheck:
        """Return VERIFIED or TAMPER_SUSPECTED for a stored vote."""
        ...
