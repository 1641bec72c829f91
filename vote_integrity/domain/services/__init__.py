"""Domain services for the vote integrity engine.

Pure functions that enforce invariants at the business-logic level.
Domain services must NOT depend on infrastructure.

Available services:
- canonical_json / iso_timestamp: deterministic hash input serialization
- validate_vote / validate_ranking: payload checks against a ballot
"""

from vote_integrity.domain.services.canonical import (
    canonical_json,
    is_sha256_hex,
    iso_timestamp,
)
from vote_integrity.domain.services.ranking_validator import (
    validate_ranking,
    validate_vote,
)

__all__ = [
    "canonical_json",
    "is_sha256_hex",
    "iso_timestamp",
    "validate_ranking",
    "validate_vote",
]
