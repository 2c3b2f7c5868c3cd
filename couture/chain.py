"""
Couture deployment bundle.

Wires one chain environment, one token registry and one exchange together,
and saves / loads the whole deployment as a single JSON document.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import LedgerConfig
from .exchange import Exchange, RegistryTokenLedger
from .ledger import ChainEnvironment
from .logger import get_logger
from .tokens import TokenRegistry

logger = get_logger(__name__)

STATE_FORMAT_VERSION = 1


class FashionChain:
    """A registry and an exchange sharing one chain environment."""

    def __init__(self, env: ChainEnvironment, registry: TokenRegistry, exchange: Exchange):
        self.env = env
        self.registry = registry
        self.exchange = exchange

    @classmethod
    def deploy(cls, config: Optional[LedgerConfig] = None) -> "FashionChain":
        """Create a fresh deployment from *config* (defaults when omitted)."""
        config = config or LedgerConfig()
        config.validate()

        env = ChainEnvironment()
        registry = TokenRegistry(
            env,
            admin=config.registry.admin,
            max_creators=config.registry.max_creators,
            max_mints_per_creator=config.registry.max_mints_per_creator,
        )
        exchange = Exchange(
            env,
            RegistryTokenLedger(registry),
            admin=config.exchange.admin,
            platform_fee_address=config.exchange.fee_recipient,
            platform_fee_percent=config.exchange.platform_fee_percent,
            max_royalty_percent=config.exchange.max_royalty_percent,
        )
        return cls(env, registry, exchange)

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": STATE_FORMAT_VERSION,
            "environment": self.env.to_dict(),
            "registry": self.registry.to_dict(),
            "exchange": self.exchange.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FashionChain":
        version = data.get("version")
        if version != STATE_FORMAT_VERSION:
            raise ValueError(f"Unsupported state format version: {version!r}")

        env = ChainEnvironment.from_dict(data.get("environment", {}))
        registry = TokenRegistry.from_dict(env, data["registry"])
        exchange = Exchange.from_dict(env, RegistryTokenLedger(registry), data["exchange"])
        return cls(env, registry, exchange)

    def save(self, path: Union[str, Path]) -> None:
        """Write the deployment to *path*, replacing it atomically."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
            os.replace(tmp, path)
        except BaseException:
            os.unlink(tmp)
            raise
        logger.debug(f"State saved to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "FashionChain":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        chain = cls.from_dict(data)
        logger.debug(f"State loaded from {path}: {chain.registry!r}, {chain.exchange!r}")
        return chain

    def __repr__(self) -> str:
        return f"<FashionChain {self.registry!r} {self.exchange!r}>"
