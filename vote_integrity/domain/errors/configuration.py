"""Configuration errors.

Configuration errors are fatal: the engine refuses to operate rather than
degrading to a weaker mode. In particular there is no unkeyed fallback when
the vote hash secret is missing.
"""

from vote_integrity.domain.exceptions import VoteIntegrityError


class ConfigurationError(VoteIntegrityError):
    """Base class for configuration errors."""

    pass


class SecretKeyNotConfiguredError(ConfigurationError):
    """Raised when the HMAC secret for vote hashes is absent or empty.

    Without the secret any party with write access to storage could
    recompute a valid hash for an edited vote, so the engine must not start.
    """

    def __init__(
        self,
        message: str = (
            "VOTE_HASH_SECRET is required for generating vote hashes; "
            "refusing to fall back to an unkeyed hash"
        ),
    ) -> None:
        """Initialize with the default missing-secret message."""
        super().__init__(message)


class InvalidQuorumError(ConfigurationError):
    """Raised when a quorum percentage or eligible-voter count is out of range.

    Attributes:
        name: Name of the offending setting.
        value: The rejected value.
    """

    def __init__(self, name: str, value: object) -> None:
        """Initialize the error.

        Args:
            name: Name of the offending setting.
            value: The rejected value.
        """
        self.name = name
        self.value = value
        super().__init__(f"Invalid quorum setting {name}={value!r}")
