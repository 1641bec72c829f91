"""Configuration module for the vote integrity engine.

Available Configurations:
- EngineConfig: vote hash secret, quorum percentages, runoff round bound
"""

from vote_integrity.config.engine_config import (
    DEFAULT_QUORUM_SETTINGS,
    DEFAULT_RUNOFF_ROUND_MARGIN,
    SECRET_KEY_ENV,
    EngineConfig,
    load_engine_config,
)

__all__ = [
    "DEFAULT_QUORUM_SETTINGS",
    "DEFAULT_RUNOFF_ROUND_MARGIN",
    "EngineConfig",
    "SECRET_KEY_ENV",
    "load_engine_config",
]
