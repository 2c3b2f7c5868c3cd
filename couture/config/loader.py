"""
Couture TOML Configuration Loader

Loads every section of couture.toml with environment variable overrides
(dataclass + from_dict + from_file).

Environment variable mapping:
    [registry] admin                → COUTURE_REGISTRY_ADMIN (or COUTURE_ADMIN)
    [registry] max_creators         → COUTURE_MAX_CREATORS
    [exchange] platform_fee_percent → COUTURE_PLATFORM_FEE_PERCENT
    ...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    COUTURE_ADMIN,
    COUTURE_STATE_FILE,
    DEFAULT_MAX_ROYALTY_PERCENT,
    DEFAULT_PLATFORM_FEE_PERCENT,
    MAX_CREATORS,
    MAX_MINTS_PER_CREATOR,
    MAX_PLATFORM_FEE_PERCENT,
    MAX_ROYALTY_CEILING,
    ZERO_ADDRESS,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Sections, one per [section] of couture.example.toml
# ---------------------------------------------------------------------------


@dataclass
class RegistrySectionConfig:
    """[registry] section."""
    admin: str = str(COUTURE_ADMIN)
    max_creators: int = MAX_CREATORS
    max_mints_per_creator: int = MAX_MINTS_PER_CREATOR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistrySectionConfig":
        return cls(
            admin=data.get("admin", str(COUTURE_ADMIN)),
            max_creators=int(data.get("max_creators", MAX_CREATORS)),
            max_mints_per_creator=int(data.get("max_mints_per_creator", MAX_MINTS_PER_CREATOR)),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("COUTURE_REGISTRY_ADMIN") or os.environ.get("COUTURE_ADMIN"):
            self.admin = v
        if v := os.environ.get("COUTURE_MAX_CREATORS"):
            self.max_creators = int(v)
        if v := os.environ.get("COUTURE_MAX_MINTS_PER_CREATOR"):
            self.max_mints_per_creator = int(v)


@dataclass
class ExchangeSectionConfig:
    """[exchange] section."""
    admin: str = str(COUTURE_ADMIN)
    platform_fee_address: str = ""  # empty → exchange admin
    platform_fee_percent: int = DEFAULT_PLATFORM_FEE_PERCENT
    max_royalty_percent: int = DEFAULT_MAX_ROYALTY_PERCENT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExchangeSectionConfig":
        return cls(
            admin=data.get("admin", str(COUTURE_ADMIN)),
            platform_fee_address=data.get("platform_fee_address", ""),
            platform_fee_percent=int(data.get("platform_fee_percent", DEFAULT_PLATFORM_FEE_PERCENT)),
            max_royalty_percent=int(data.get("max_royalty_percent", DEFAULT_MAX_ROYALTY_PERCENT)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("COUTURE_EXCHANGE_ADMIN") or os.environ.get("COUTURE_ADMIN"):
            self.admin = v
        if v := os.environ.get("COUTURE_PLATFORM_FEE_ADDRESS"):
            self.platform_fee_address = v
        if v := os.environ.get("COUTURE_PLATFORM_FEE_PERCENT"):
            self.platform_fee_percent = int(v)
        if v := os.environ.get("COUTURE_MAX_ROYALTY_PERCENT"):
            self.max_royalty_percent = int(v)

    @property
    def fee_recipient(self) -> str:
        return self.platform_fee_address or self.admin


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(level=str(data.get("level", "INFO")).upper())

    def apply_env(self) -> None:
        if v := os.environ.get("COUTURE_LOG_LEVEL"):
            self.level = v.upper()


@dataclass
class StateSectionConfig:
    """[state] section: where the CLI keeps the serialized deployment."""
    path: str = str(COUTURE_STATE_FILE)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StateSectionConfig":
        return cls(path=data.get("path", str(COUTURE_STATE_FILE)))

    def apply_env(self) -> None:
        if v := os.environ.get("COUTURE_STATE_FILE"):
            self.path = v


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass
class LedgerConfig:
    """
    Complete configuration of one registry + exchange deployment.

    Loaded from couture.toml; environment variables win over TOML values.
    """
    registry: RegistrySectionConfig = field(default_factory=RegistrySectionConfig)
    exchange: ExchangeSectionConfig = field(default_factory=ExchangeSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)
    state: StateSectionConfig = field(default_factory=StateSectionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerConfig":
        return cls(
            registry=RegistrySectionConfig.from_dict(data.get("registry", {})),
            exchange=ExchangeSectionConfig.from_dict(data.get("exchange", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
            state=StateSectionConfig.from_dict(data.get("state", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "LedgerConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults plus environment overrides
        are used instead.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
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

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.registry.apply_env()
        self.exchange.apply_env()
        self.logging.apply_env()
        self.state.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        for name, admin in (("registry", self.registry.admin), ("exchange", self.exchange.admin)):
            if not admin or admin == ZERO_ADDRESS:
                raise ConfigurationError(f"{name} admin cannot be empty or the zero address")
        if self.exchange.fee_recipient == ZERO_ADDRESS:
            raise ConfigurationError("platform_fee_address cannot be the zero address")
        if not 1 <= self.registry.max_creators <= MAX_CREATORS:
            raise ConfigurationError(f"max_creators must be within 1..{MAX_CREATORS}")
        if not 1 <= self.registry.max_mints_per_creator <= MAX_MINTS_PER_CREATOR:
            raise ConfigurationError(f"max_mints_per_creator must be within 1..{MAX_MINTS_PER_CREATOR}")
        if not 0 <= self.exchange.platform_fee_percent <= MAX_PLATFORM_FEE_PERCENT:
            raise ConfigurationError(f"platform_fee_percent must be within 0..{MAX_PLATFORM_FEE_PERCENT}")
        if not 0 <= self.exchange.max_royalty_percent <= MAX_ROYALTY_CEILING:
            raise ConfigurationError(f"max_royalty_percent must be within 0..{MAX_ROYALTY_CEILING}")
        if self.logging.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registry": {
                "admin": self.registry.admin,
                "max_creators": self.registry.max_creators,
                "max_mints_per_creator": self.registry.max_mints_per_creator,
            },
            "exchange": {
                "admin": self.exchange.admin,
                "platform_fee_address": self.exchange.fee_recipient,
                "platform_fee_percent": self.exchange.platform_fee_percent,
                "max_royalty_percent": self.exchange.max_royalty_percent,
            },
            "logging": {"level": self.logging.level},
            "state": {"path": self.state.path},
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> LedgerConfig:
    """
    Load ledger configuration.

    Resolution order:
        1. Explicit *path* argument
        2. COUTURE_CONFIG env var
        3. ./couture.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("COUTURE_CONFIG", "couture.toml")

    return LedgerConfig.from_file(path)
