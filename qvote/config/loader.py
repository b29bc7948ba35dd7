"""
qvote TOML Configuration Loader

Loads every section of config.toml with environment variable overrides.
Each section is a dataclass with ``from_dict`` and ``apply_env``.

Environment variable mapping:
    [program] program_id     → QVOTE_PROGRAM_ID
    [asset]   mint           → QVOTE_ASSET_MINT
    [store]   snapshot_path  → QVOTE_STORE_PATH
    [logging] level          → QVOTE_LOG_LEVEL
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import QVOTE_PROGRAM_ID, QVOTE_ASSET_MINT, QVOTE_STORE_PATH, LOG_LEVEL
from ..exceptions import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

_HEX32 = re.compile(r"^0x[0-9a-fA-F]{64}$")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ProgramConfig:
    """[program] section."""
    program_id: str = str(QVOTE_PROGRAM_ID)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgramConfig":
        return cls(program_id=data.get("program_id", str(QVOTE_PROGRAM_ID)))

    def apply_env(self) -> None:
        if v := os.environ.get("QVOTE_PROGRAM_ID"):
            self.program_id = v


@dataclass
class AssetConfig:
    """[asset] section. An empty mint accepts token accounts of any asset."""
    mint: str = str(QVOTE_ASSET_MINT)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetConfig":
        return cls(mint=data.get("mint", str(QVOTE_ASSET_MINT)))

    def apply_env(self) -> None:
        if v := os.environ.get("QVOTE_ASSET_MINT"):
            self.mint = v


@dataclass
class StoreConfig:
    """[store] section."""
    snapshot_path: str = str(QVOTE_STORE_PATH)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreConfig":
        return cls(snapshot_path=data.get("snapshot_path", str(QVOTE_STORE_PATH)))

    def apply_env(self) -> None:
        if v := os.environ.get("QVOTE_STORE_PATH"):
            self.snapshot_path = v


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = str(LOG_LEVEL)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(level=str(data.get("level", str(LOG_LEVEL))).upper())

    def apply_env(self) -> None:
        if v := os.environ.get("QVOTE_LOG_LEVEL"):
            self.level = v.upper()


@dataclass
class QVoteConfig:
    """Top-level configuration."""
    program: ProgramConfig = field(default_factory=ProgramConfig)
    asset: AssetConfig = field(default_factory=AssetConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QVoteConfig":
        return cls(
            program=ProgramConfig.from_dict(data.get("program", {})),
            asset=AssetConfig.from_dict(data.get("asset", {})),
            store=StoreConfig.from_dict(data.get("store", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "QVoteConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides applied).
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.program.apply_env()
        self.asset.apply_env()
        self.store.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        if not _HEX32.match(self.program.program_id):
            raise ConfigurationError(
                f"program_id must be 0x followed by 64 hex chars, got {self.program.program_id!r}"
            )
        if self.asset.mint and not _HEX32.match(self.asset.mint):
            raise ConfigurationError(f"Invalid asset mint: {self.asset.mint!r}")
        if not self.store.snapshot_path:
            raise ConfigurationError("store.snapshot_path must not be empty")
        if self.logging.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        return True

    @property
    def asset_mint(self) -> Optional[str]:
        return self.asset.mint or None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "program": {"program_id": self.program.program_id},
            "asset": {"mint": self.asset.mint},
            "store": {"snapshot_path": self.store.snapshot_path},
            "logging": {"level": self.logging.level},
        }


def load_config(path: Optional[str] = None) -> QVoteConfig:
    """
    Load configuration.

    Resolution order:
        1. Explicit *path* argument
        2. QVOTE_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("QVOTE_CONFIG", "config.toml")

    cfg = QVoteConfig.from_file(path)
    cfg.validate()
    return cfg
