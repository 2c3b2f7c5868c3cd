"""
Fashion NFT token registry.

Provides:
  - TokenRegistry : token identity, ownership, metadata, creator whitelist
  - TokenMetadata : content URI + immutable creator
"""

from .registry import (
    TokenMetadata,
    TokenRegistry,
    validate_uri,
)

__all__ = [
    "TokenMetadata",
    "TokenRegistry",
    "validate_uri",
]
