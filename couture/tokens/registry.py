"""
Fashion NFT Token Registry

Owns token identity, ownership, per-token metadata, the creator whitelist and
per-creator mint accounting:
  - Sequential token IDs starting at 1, never reused
  - Admin-curated creator whitelist (append-only, bounded)
  - Per-creator mint cap
  - Metadata editable only by the token's original creator, even after sale
  - Admin control plane (pause, admin transfer) and an append-only event log

Every mutating call runs inside the chain environment's transaction scope and
either applies completely, appending one event, or raises a LedgerError and
leaves the registry untouched.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..constants import (
    EVENT_CREATOR_REGISTERED,
    EVENT_METADATA_UPDATED,
    EVENT_NFT_MINTED,
    EVENT_NFT_TRANSFERRED,
    FIRST_TOKEN_ID,
    MAX_CREATORS,
    MAX_MINTS_PER_CREATOR,
    MAX_URI_LENGTH,
    ZERO_ADDRESS,
)
from ..exceptions import ErrorCode, ledger_error
from ..ledger.admin import REGISTRY_ADMIN_CODES, AdminControl
from ..ledger.environment import ChainEnvironment
from ..ledger.events import EventLog, LedgerEvent
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  METADATA
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TokenMetadata:
    """Content URI and the immutable creator of a token."""
    uri: str
    creator: str

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.uri, "creator": self.creator}


def validate_uri(uri: str) -> str:
    """Return *uri* if it is a non-empty string within the length bound."""
    if not isinstance(uri, str) or not uri:
        raise ledger_error(ErrorCode.INVALID_URI, "token URI cannot be empty")
    if len(uri) > MAX_URI_LENGTH:
        raise ledger_error(
            ErrorCode.INVALID_URI,
            f"token URI length {len(uri)} exceeds max {MAX_URI_LENGTH}",
        )
    return uri


# ══════════════════════════════════════════════════════════════════════
#  TOKEN REGISTRY
# ══════════════════════════════════════════════════════════════════════

class TokenRegistry:
    """
    Fashion NFT registry.

    Mutating calls take the caller principal first:
        - register_creator(caller, creator)
        - mint(caller, recipient, uri) → token_id
        - transfer(caller, token_id, recipient)
        - update_metadata(caller, token_id, new_uri)
        - transfer_admin(caller, new_admin) / set_paused(caller, flag)

    Read-only queries never raise; absence is reported as ``None``, ``0``
    or ``False``.
    """

    def __init__(
        self,
        env: ChainEnvironment,
        admin: str,
        *,
        max_creators: int = MAX_CREATORS,
        max_mints_per_creator: int = MAX_MINTS_PER_CREATOR,
    ):
        """
        Args:
            env: Chain environment providing atomic commit
            admin: Initial admin principal
            max_creators: Creator whitelist capacity
            max_mints_per_creator: Mint cap per registered creator
        """
        if max_creators < 1:
            raise ValueError("max_creators must be >= 1")
        if max_mints_per_creator < 1:
            raise ValueError("max_mints_per_creator must be >= 1")

        self._env = env
        self._events = EventLog()
        self._control = AdminControl(admin, self._events, REGISTRY_ADMIN_CODES, name="registry")
        self.max_creators = max_creators
        self.max_mints_per_creator = max_mints_per_creator

        self._last_token_id = FIRST_TOKEN_ID - 1
        self._owners: Dict[int, str] = {}
        self._metadata: Dict[int, TokenMetadata] = {}
        # Insertion-ordered: keys give O(1) membership and registration order
        self._creators: Dict[str, None] = {}
        self._mint_counts: Dict[str, int] = {}

        env.attach(self)
        logger.info(f"Token registry deployed, admin={admin}")

    # ── Read-only views ───────────────────────────────────────────────

    def get_owner(self, token_id: int) -> Optional[str]:
        return self._owners.get(token_id)

    def get_metadata(self, token_id: int) -> Optional[TokenMetadata]:
        return self._metadata.get(token_id)

    def get_total_minted(self) -> int:
        return self._last_token_id

    def get_admin(self) -> str:
        return self._control.admin

    def is_paused(self) -> bool:
        return self._control.paused

    def get_creator_mint_count(self, creator: str) -> int:
        return self._mint_counts.get(creator, 0)

    def is_creator_registered(self, creator: str) -> bool:
        return creator in self._creators

    def get_creators(self) -> List[str]:
        return list(self._creators)

    @property
    def creator_count(self) -> int:
        return len(self._creators)

    def token_exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def tokens_of(self, owner: str) -> List[int]:
        return sorted(t for t, o in self._owners.items() if o == owner)

    @property
    def events(self) -> EventLog:
        return self._events

    def get_event(self, event_id: int) -> Optional[LedgerEvent]:
        return self._events.get(event_id)

    # ── Admin control plane ───────────────────────────────────────────

    def transfer_admin(self, caller: str, new_admin: str) -> bool:
        with self._env.transaction():
            return self._control.transfer_admin(caller, new_admin)

    def set_paused(self, caller: str, flag: bool) -> bool:
        with self._env.transaction():
            return self._control.set_paused(caller, flag)

    def register_creator(self, caller: str, creator: str) -> bool:
        """Whitelist *creator* for minting (admin only)."""
        with self._env.transaction():
            self._control.require_admin(caller)
            if not creator or creator == ZERO_ADDRESS:
                raise ledger_error(ErrorCode.INVALID_ADDRESS, "creator cannot be the zero address")
            if creator in self._creators:
                raise ledger_error(ErrorCode.DUPLICATE_CREATOR, f"{creator} already registered")
            if len(self._creators) >= self.max_creators:
                raise ledger_error(
                    ErrorCode.CAPACITY_EXCEEDED,
                    f"creator registry is full ({self.max_creators})",
                )

            self._creators[creator] = None
            self._events.append(EVENT_CREATOR_REGISTERED, caller, creator)

        logger.info(f"Creator registered: {creator} ({len(self._creators)}/{self.max_creators})")
        return True

    # ── Core NFT operations ───────────────────────────────────────────

    def mint(self, caller: str, recipient: str, uri: str) -> int:
        """
        Mint a new token created by *caller* and owned by *recipient*.

        Returns:
            The new token ID.
        """
        with self._env.transaction():
            self._control.require_not_paused()
            if caller not in self._creators:
                raise ledger_error(ErrorCode.UNAUTHORIZED_CREATOR, f"{caller} is not a registered creator")
            if not recipient or recipient == ZERO_ADDRESS:
                raise ledger_error(ErrorCode.INVALID_ADDRESS, "cannot mint to the zero address")
            validate_uri(uri)
            minted = self.get_creator_mint_count(caller)
            if minted >= self.max_mints_per_creator:
                raise ledger_error(
                    ErrorCode.MINT_LIMIT_EXCEEDED,
                    f"{caller} reached the mint cap ({self.max_mints_per_creator})",
                )

            token_id = self._last_token_id + 1
            self._last_token_id = token_id
            self._owners[token_id] = recipient
            self._metadata[token_id] = TokenMetadata(uri=uri, creator=caller)
            self._mint_counts[caller] = minted + 1
            self._events.append(EVENT_NFT_MINTED, caller, uri, token_id=token_id)

        logger.info(f"Minted #{token_id} by {caller} → {recipient}")
        return token_id

    def transfer(self, caller: str, token_id: int, recipient: str) -> bool:
        """Move *token_id* from its owner (*caller*) to *recipient*."""
        with self._env.transaction():
            self._control.require_not_paused()
            owner = self._owners.get(token_id)
            if owner is None or owner != caller:
                raise ledger_error(ErrorCode.NOT_OWNER, f"{caller} does not own #{token_id}")
            if not recipient or recipient == ZERO_ADDRESS:
                raise ledger_error(ErrorCode.INVALID_ADDRESS, "cannot transfer to the zero address")

            self._owners[token_id] = recipient
            self._events.append(EVENT_NFT_TRANSFERRED, caller, recipient, token_id=token_id)

        logger.info(f"Transfer #{token_id}: {caller} → {recipient}")
        return True

    def update_metadata(self, caller: str, token_id: int, new_uri: str) -> bool:
        """
        Replace the URI of *token_id*.

        Only the original creator may edit, whoever owns the token now.
        """
        with self._env.transaction():
            self._control.require_not_paused()
            metadata = self._metadata.get(token_id)
            if metadata is None:
                raise ledger_error(ErrorCode.TOKEN_NOT_FOUND, f"token #{token_id} does not exist")
            if metadata.creator != caller:
                raise ledger_error(ErrorCode.NOT_AUTHORIZED, f"{caller} is not the creator of #{token_id}")
            validate_uri(new_uri)

            self._metadata[token_id] = TokenMetadata(uri=new_uri, creator=metadata.creator)
            self._events.append(EVENT_METADATA_UPDATED, caller, new_uri, token_id=token_id)

        logger.info(f"Metadata updated for #{token_id} by {caller}")
        return True

    # ── Snapshot / restore (environment rollback) ─────────────────────

    def capture(self) -> Dict[str, Any]:
        return {
            "control": self._control.capture(),
            "events": self._events.capture(),
            "last_token_id": self._last_token_id,
            "owners": dict(self._owners),
            "metadata": dict(self._metadata),
            "creators": dict(self._creators),
            "mint_counts": dict(self._mint_counts),
        }

    def restore(self, state: Dict[str, Any]) -> None:
        self._control.restore(state["control"])
        self._events.restore(state["events"])
        self._last_token_id = state["last_token_id"]
        self._owners = state["owners"]
        self._metadata = state["metadata"]
        self._creators = state["creators"]
        self._mint_counts = state["mint_counts"]

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin": self._control.admin,
            "paused": self._control.paused,
            "maxCreators": self.max_creators,
            "maxMintsPerCreator": self.max_mints_per_creator,
            "lastTokenId": self._last_token_id,
            "creators": list(self._creators),
            "mintCounts": dict(self._mint_counts),
            "tokens": {
                str(token_id): {
                    "owner": self._owners[token_id],
                    **self._metadata[token_id].to_dict(),
                }
                for token_id in sorted(self._owners)
            },
            "events": self._events.to_list(),
        }

    @classmethod
    def from_dict(cls, env: ChainEnvironment, data: Dict[str, Any]) -> "TokenRegistry":
        registry = cls(
            env,
            admin=data["admin"],
            max_creators=int(data.get("maxCreators", MAX_CREATORS)),
            max_mints_per_creator=int(data.get("maxMintsPerCreator", MAX_MINTS_PER_CREATOR)),
        )
        registry._control.restore({"admin": data["admin"], "paused": data.get("paused", False)})
        registry._last_token_id = int(data.get("lastTokenId", 0))
        registry._creators = {c: None for c in data.get("creators", [])}
        registry._mint_counts = {c: int(n) for c, n in data.get("mintCounts", {}).items()}
        for key, token in data.get("tokens", {}).items():
            token_id = int(key)
            if not FIRST_TOKEN_ID <= token_id <= registry._last_token_id:
                raise ValueError(f"token #{token_id} is outside the minted range")
            registry._owners[token_id] = token["owner"]
            registry._metadata[token_id] = TokenMetadata(uri=token["uri"], creator=token["creator"])
        registry._events.load(data.get("events", []))
        return registry

    def __repr__(self) -> str:
        return f"<TokenRegistry minted={self._last_token_id} creators={len(self._creators)}>"
