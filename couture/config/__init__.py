"""
Couture Unified Configuration

Loads all sections of couture.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    LedgerConfig,
    RegistrySectionConfig,
    ExchangeSectionConfig,
    LoggingSectionConfig,
    StateSectionConfig,
    load_config,
)

__all__ = [
    "LedgerConfig",
    "RegistrySectionConfig",
    "ExchangeSectionConfig",
    "LoggingSectionConfig",
    "StateSectionConfig",
    "load_config",
]
