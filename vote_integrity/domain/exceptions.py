"""Base exception classes for the vote integrity domain layer."""


class VoteIntegrityError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so callers
    can separate engine failures from unrelated runtime errors.

    Subclass families:
    - ConfigurationError: the engine refuses to operate (fatal, not retried)
    - StructuralViolationError: an input breaks a structural invariant
    - TreeAlreadyBuiltError: an illegal Merkle tree state transition
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
