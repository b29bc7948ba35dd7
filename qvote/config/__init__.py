"""
qvote Configuration

Loads config.toml at startup. Environment variables override TOML values.
"""

from .loader import (
    AssetConfig,
    LoggingConfig,
    ProgramConfig,
    QVoteConfig,
    StoreConfig,
    load_config,
)

__all__ = [
    "AssetConfig",
    "LoggingConfig",
    "ProgramConfig",
    "QVoteConfig",
    "StoreConfig",
    "load_config",
]
