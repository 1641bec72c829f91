"""Engine configuration: vote hash secret, quorum percentages, runoff bound.

Values come from environment variables, optionally loaded from a .env file.
The secret never appears in repr() output or in any result structure.

Environment Variables:
- VOTE_HASH_SECRET: HMAC secret for vote hashes (required to hash or verify)
- SINGLE_SEAT_QUORUM_PERCENT: Quorum for single-seat ballots (default: 10)
- MULTI_SEAT_QUORUM_PERCENT: Quorum for multi-seat ballots (default: 10)
- REFERENDUM_QUORUM_PERCENT: Quorum for referendums (default: 20)
- RUNOFF_ROUND_MARGIN: Extra rounds allowed beyond the candidate count
  before an instant runoff is declared exhausted (default: 5, min: 0)
- LOG_FORMAT: "json" or "console" (default: json)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from vote_integrity.domain.errors.configuration import (
    InvalidQuorumError,
    SecretKeyNotConfiguredError,
)
from vote_integrity.domain.models.results import QuorumSettings

SECRET_KEY_ENV = "VOTE_HASH_SECRET"

# =============================================================================
# Quorum Configuration
# =============================================================================

DEFAULT_SINGLE_SEAT_QUORUM_PERCENT = 10.0
DEFAULT_MULTI_SEAT_QUORUM_PERCENT = 10.0
DEFAULT_REFERENDUM_QUORUM_PERCENT = 20.0

MIN_QUORUM_PERCENT = 0.0
MAX_QUORUM_PERCENT = 100.0

# =============================================================================
# Runoff Configuration
# =============================================================================

# Rounds allowed = candidate count + margin
DEFAULT_RUNOFF_ROUND_MARGIN = 5

DEFAULT_QUORUM_SETTINGS = QuorumSettings(
    single_seat=DEFAULT_SINGLE_SEAT_QUORUM_PERCENT,
    multi_seat=DEFAULT_MULTI_SEAT_QUORUM_PERCENT,
    referendum=DEFAULT_REFERENDUM_QUORUM_PERCENT,
)


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed float value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def validate_quorum_percentage(name: str, value: float) -> float:
    """Check a quorum percentage is within [0, 100].

    Raises:
        InvalidQuorumError: If the value is out of range.
    """
    if not MIN_QUORUM_PERCENT <= value <= MAX_QUORUM_PERCENT:
        raise InvalidQuorumError(name, value)
    return value


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the tallying and integrity engine.

    Attributes:
        secret_key: HMAC secret for vote hashes. Excluded from repr.
        quorum: Quorum percentage per ballot kind.
        runoff_round_margin: Rounds allowed beyond the candidate count.
        log_format: "json" (production) or "console" (development).
    """

    secret_key: str | None = field(default=None, repr=False)
    quorum: QuorumSettings = DEFAULT_QUORUM_SETTINGS
    runoff_round_margin: int = DEFAULT_RUNOFF_ROUND_MARGIN
    log_format: str = "json"

    def __post_init__(self) -> None:
        """Validate configuration values.

        Raises:
            InvalidQuorumError: If a quorum percentage is out of range.
            ValueError: If runoff_round_margin is negative.
        """
        validate_quorum_percentage("single_seat", self.quorum.single_seat)
        validate_quorum_percentage("multi_seat", self.quorum.multi_seat)
        validate_quorum_percentage("referendum", self.quorum.referendum)
        if self.runoff_round_margin < 0:
            raise ValueError(
                f"runoff_round_margin must be >= 0, got {self.runoff_round_margin}"
            )

    @property
    def has_secret_key(self) -> bool:
        return bool(self.secret_key)

    def require_secret_key(self) -> bytes:
        """Return the HMAC secret as bytes.

        Raises:
            SecretKeyNotConfiguredError: If no secret is configured.
        """
        if not self.secret_key:
            raise SecretKeyNotConfiguredError()
        return self.secret_key.encode("utf-8")

    @property
    def logging_environment(self) -> str:
        """Environment name understood by configure_structlog."""
        return "development" if self.log_format == "console" else "production"

    @classmethod
    def from_environment(cls) -> EngineConfig:
        """Create configuration from environment variables.

        A missing secret is not an error here; it becomes fatal as soon as
        a vote hash is computed or verified.
        """
        return cls(
            secret_key=os.environ.get(SECRET_KEY_ENV) or None,
            quorum=QuorumSettings(
                single_seat=_get_float_env(
                    "SINGLE_SEAT_QUORUM_PERCENT", DEFAULT_SINGLE_SEAT_QUORUM_PERCENT
                ),
                multi_seat=_get_float_env(
                    "MULTI_SEAT_QUORUM_PERCENT", DEFAULT_MULTI_SEAT_QUORUM_PERCENT
                ),
                referendum=_get_float_env(
                    "REFERENDUM_QUORUM_PERCENT", DEFAULT_REFERENDUM_QUORUM_PERCENT
                ),
            ),
            runoff_round_margin=max(
                0, _get_int_env("RUNOFF_ROUND_MARGIN", DEFAULT_RUNOFF_ROUND_MARGIN)
            ),
            log_format=os.environ.get("LOG_FORMAT", "json").lower(),
        )


def load_engine_config(dotenv_path: str | Path | None = None) -> EngineConfig:
    """Load a .env file (if present) and build the engine configuration.

    Variables already set in the process environment take precedence over
    values in the .env file.

    Args:
        dotenv_path: Explicit .env location; defaults to searching upward
            from the working directory.
    """
    if dotenv_path is None:
        dotenv_path = find_dotenv(usecwd=True)
    load_dotenv(dotenv_path=dotenv_path, override=False)
    return EngineConfig.from_environment()
