"""HMAC vote hash service (Hash Engine).

Stamps each vote at cast time with a keyed hash that doubles as the voter's
receipt and as the vote's Merkle leaf.

Hash input:
    election_id | ballot_id | canonical_json(payload) | voter_id | ISO8601(timestamp)

Why keyed:
A plain SHA-256 would let anyone with write access to storage edit a vote
and recompute a valid hash. An HMAC cannot be reproduced without the
secret, which is never persisted alongside the votes it protects.

Delimiter handling:
The three identifier fields must not contain "|". The payload sits between
them and the timestamp never contains "|", so the split stays unambiguous
even when a candidate id inside the payload does.

Usage:
    service = VoteHashService.from_config(load_engine_config())
    receipt = service.compute_hash(election_id, ballot_id, Ranked(("a", "b")),
                                   voter_id, cast_at)
    assert service.verify_hash(receipt, election_id, ballot_id,
                               Ranked(("a", "b")), voter_id, cast_at)
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime

from vote_integrity.application.services.base import LoggingMixin
from vote_integrity.config.engine_config import EngineConfig
from vote_integrity.domain.errors.configuration import SecretKeyNotConfiguredError
from vote_integrity.domain.errors.structural import DelimiterCollisionError
from vote_integrity.domain.models.integrity import IntegrityCheck, IntegrityStatus
from vote_integrity.domain.models.vote import (
    Abstain,
    No,
    Ranked,
    VotePayload,
    VoteRecord,
    Yes,
)
from vote_integrity.domain.services.canonical import (
    canonical_json,
    is_sha256_hex,
    iso_timestamp,
)

HASH_DELIMITER = "|"


def serialize_payload(payload: VotePayload) -> str:
    """Serialize a vote payload to its canonical JSON form.

    Raises:
        TypeError: If payload is not a VotePayload member.
    """
    if isinstance(payload, (Yes, No, Abstain, Ranked)):
        return canonical_json(payload.to_wire())
    raise TypeError(f"Unsupported vote payload: {type(payload).__name__}")


def build_hash_input(
    election_id: str,
    ballot_id: str,
    payload: VotePayload,
    voter_id: str,
    timestamp: datetime,
) -> str:
    """Build the delimited string that is fed to the HMAC.

    Raises:
        DelimiterCollisionError: If an identifier contains the delimiter.
    """
    for field_name, value in (
        ("election_id", election_id),
        ("ballot_id", ballot_id),
        ("voter_id", voter_id),
    ):
        if HASH_DELIMITER in value:
            raise DelimiterCollisionError(field_name, HASH_DELIMITER)

    return HASH_DELIMITER.join(
        [
            election_id,
            ballot_id,
            serialize_payload(payload),
            voter_id,
            iso_timestamp(timestamp),
        ]
    )


class VoteHashService(LoggingMixin):
    """HMAC-SHA256 implementation of VoteHasherProtocol.

    The service refuses to exist without a secret: construction raises
    SecretKeyNotConfiguredError instead of falling back to a plain hash.
    """

    def __init__(self, secret_key: str | bytes | None) -> None:
        """Initialize the service.

        Args:
            secret_key: HMAC secret (str is UTF-8 encoded).

        Raises:
            SecretKeyNotConfiguredError: If secret_key is missing or empty.
        """
        if not secret_key:
            raise SecretKeyNotConfiguredError()
        if isinstance(secret_key, str):
            secret_key = secret_key.encode("utf-8")
        self._secret = bytes(secret_key)
        self._init_logger(component="integrity")

    @classmethod
    def from_config(cls, config: EngineConfig) -> VoteHashService:
        """Create the service from engine configuration.

        Raises:
            SecretKeyNotConfiguredError: If the config has no secret.
        """
        return cls(config.require_secret_key())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(secret=<redacted>)"

    def compute_hash(
        self,
        election_id: str,
        ballot_id: str,
        payload: VotePayload,
        voter_id: str,
        timestamp: datetime,
    ) -> str:
        """Compute the vote hash.

        Returns:
            Lowercase hex HMAC-SHA256 digest (64 characters).

        Raises:
            DelimiterCollisionError: If an identifier contains "|".
        """
        hash_input = build_hash_input(election_id, ballot_id, payload, voter_id, timestamp)
        vote_hash = hmac.new(
            self._secret, hash_input.encode("utf-8"), hashlib.sha256
        ).hexdigest()

        self._log_operation(
            "compute_hash", election_id=election_id, ballot_id=ballot_id
        ).debug("vote_hash_computed", hash_prefix=vote_hash[:8])
        return vote_hash

    def verify_hash(
        self,
        vote_hash: str,
        election_id: str,
        ballot_id: str,
        payload: VotePayload,
        voter_id: str,
        timestamp: datetime,
    ) -> bool:
        """Recompute the hash and compare in constant time.

        Presented hashes that are not exactly 64 lowercase hex characters
        verify as False.
        """
        expected = self.compute_hash(election_id, ballot_id, payload, voter_id, timestamp)
        if not is_sha256_hex(vote_hash):
            return False
        return hmac.compare_digest(expected.encode("ascii"), vote_hash.encode("ascii"))

    def check_integrity(self, record: VoteRecord, voter_id: str) -> IntegrityCheck:
        """Compare a stored vote record's hash against a recomputation.

        A mismatch is returned as TAMPER_SUSPECTED and logged; it is never
        corrected here.

        Args:
            record: The stored vote.
            voter_id: The voter identifier used when the vote was cast.
        """
        matches = self.verify_hash(
            record.vote_hash,
            record.election_id,
            record.ballot_id,
            record.payload,
            voter_id,
            record.timestamp,
        )
        log = self._log_operation(
            "check_integrity",
            election_id=record.election_id,
            ballot_id=record.ballot_id,
            hash_prefix=record.vote_hash[:8],
        )
        if not matches:
            log.warning("vote_hash_mismatch")
            return IntegrityCheck(
                status=IntegrityStatus.TAMPER_SUSPECTED,
                stored_hash=record.vote_hash,
                ballot_id=record.ballot_id,
            )

        log.debug("vote_hash_verified")
        return IntegrityCheck(
            status=IntegrityStatus.VERIFIED,
            stored_hash=record.vote_hash,
            ballot_id=record.ballot_id,
        )
