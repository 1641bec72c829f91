"""Domain errors for the vote integrity engine.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from VoteIntegrityError.
"""

from vote_integrity.domain.errors.configuration import (
    ConfigurationError,
    InvalidQuorumError,
    SecretKeyNotConfiguredError,
)
from vote_integrity.domain.errors.merkle import (
    EmptyTreeError,
    InvalidLeafHashError,
    TreeAlreadyBuiltError,
)
from vote_integrity.domain.errors.structural import (
    DelimiterCollisionError,
    EmptyBallotError,
    InvalidBallotError,
    InvalidRankingError,
    RankingErrorCode,
    StructuralViolationError,
)

__all__: list[str] = [
    "ConfigurationError",
    "DelimiterCollisionError",
    "EmptyBallotError",
    "EmptyTreeError",
    "InvalidBallotError",
    "InvalidLeafHashError",
    "InvalidQuorumError",
    "InvalidRankingError",
    "RankingErrorCode",
    "SecretKeyNotConfiguredError",
    "StructuralViolationError",
    "TreeAlreadyBuiltError",
]
