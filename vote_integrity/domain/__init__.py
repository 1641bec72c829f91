"""
Domain layer - pure election logic for the vote integrity engine.

This layer contains:
- Ballots, candidates and the vote payload sum type
- Merkle tree, proof and tally value objects
- Domain exceptions
- Validation and canonical serialization

CRITICAL: This layer must NOT import from application, infrastructure, or cli.
Only stdlib and typing imports are allowed.
"""

from vote_integrity.domain.errors import (
    ConfigurationError,
    SecretKeyNotConfiguredError,
    StructuralViolationError,
)
from vote_integrity.domain.exceptions import VoteIntegrityError

__all__: list[str] = [
    "ConfigurationError",
    "SecretKeyNotConfiguredError",
    "StructuralViolationError",
    "VoteIntegrityError",
]
