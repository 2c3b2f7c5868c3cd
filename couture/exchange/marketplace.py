"""
Fashion NFT Exchange

Fixed-price marketplace on top of a token ledger:
  - Listings keyed by token ID, at most one per token (re-listing overwrites)
  - Per-token operator approvals that let a non-owner list on the owner's behalf
  - Atomic purchase settlement: platform fee, creator royalty and seller
    proceeds are paid and ownership moves to the buyer in one unit
  - Admin control plane (pause, admin transfer, fee address / fee percent /
    royalty ceiling) and an append-only event log

Security:
  - Ownership is always read live from the token ledger, never cached
  - All settlement amounts are derived from one snapshot of the listing and
    metadata taken before any mutation
  - Any failing leg of a purchase reverts every leg through the chain
    environment's transaction scope

Approvals are not cleared when a token changes hands, so an operator approved
by a previous owner stays approved until revoked. A listing whose seller is
neither the current owner nor an approved operator cannot be bought.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..constants import (
    DEFAULT_MAX_ROYALTY_PERCENT,
    DEFAULT_PLATFORM_FEE_PERCENT,
    EVENT_FEE_ADDRESS_UPDATED,
    EVENT_FEE_PERCENT_UPDATED,
    EVENT_MAX_ROYALTY_UPDATED,
    EVENT_NFT_DELISTED,
    EVENT_NFT_LISTED,
    EVENT_NFT_SOLD,
    EVENT_OPERATOR_APPROVED,
    EVENT_OPERATOR_REVOKED,
    MAX_PLATFORM_FEE_PERCENT,
    MAX_ROYALTY_CEILING,
)
from ..exceptions import ErrorCode, ledger_error
from ..ledger.admin import EXCHANGE_ADMIN_CODES, AdminControl
from ..ledger.environment import ChainEnvironment
from ..ledger.events import EventLog, LedgerEvent
from ..logger import get_logger
from .interfaces import TokenLedger
from .settlement import SaleReceipt, compute_split

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  LISTING
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Listing:
    """An active fixed-price offer for one token."""
    token_id: int
    price: int
    seller: str
    royalty_percent: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenId": self.token_id,
            "price": self.price,
            "seller": self.seller,
            "royaltyPercent": self.royalty_percent,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Listing":
        return cls(
            token_id=int(data["tokenId"]),
            price=int(data["price"]),
            seller=data["seller"],
            royalty_percent=int(data["royaltyPercent"]),
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_fee_percent(bps: int) -> int:
    if not _is_int(bps) or bps < 0 or bps > MAX_PLATFORM_FEE_PERCENT:
        raise ledger_error(
            ErrorCode.INVALID_PERCENTAGE,
            f"platform fee {bps} bps outside 0..{MAX_PLATFORM_FEE_PERCENT}",
        )
    return bps


def _require_royalty_ceiling(bps: int) -> int:
    if not _is_int(bps) or bps < 0 or bps > MAX_ROYALTY_CEILING:
        raise ledger_error(
            ErrorCode.INVALID_PERCENTAGE,
            f"max royalty {bps} bps outside 0..{MAX_ROYALTY_CEILING}",
        )
    return bps


# ══════════════════════════════════════════════════════════════════════
#  EXCHANGE
# ══════════════════════════════════════════════════════════════════════

class Exchange:
    """
    Marketplace ledger.

    Mutating calls take the caller principal first:
        - approve_operator / revoke_operator(caller, token_id, operator)
        - list(caller, token_id, price, royalty_percent)
        - delist(caller, token_id)
        - buy(caller, token_id) → SaleReceipt
        - transfer_admin, set_paused, set_platform_fee_address,
          set_platform_fee_percent, set_max_royalty_percent (admin only)
    """

    def __init__(
        self,
        env: ChainEnvironment,
        tokens: TokenLedger,
        admin: str,
        *,
        platform_fee_address: Optional[str] = None,
        platform_fee_percent: int = DEFAULT_PLATFORM_FEE_PERCENT,
        max_royalty_percent: int = DEFAULT_MAX_ROYALTY_PERCENT,
    ):
        """
        Args:
            env: Chain environment providing balances and atomic commit
            tokens: Token ledger the exchange reads owners/metadata from
            admin: Initial admin principal
            platform_fee_address: Fee recipient (defaults to *admin*)
            platform_fee_percent: Platform fee in basis points (≤ 500)
            max_royalty_percent: Royalty ceiling for listings in basis points
        """
        self._env = env
        self._tokens = tokens
        self._events = EventLog()
        self._control = AdminControl(admin, self._events, EXCHANGE_ADMIN_CODES, name="exchange")

        fee_address = platform_fee_address or admin
        self._control.require_address(fee_address)
        self._platform_fee_address = fee_address
        self._platform_fee_percent = _require_fee_percent(platform_fee_percent)
        self._max_royalty_percent = _require_royalty_ceiling(max_royalty_percent)

        self._listings: Dict[int, Listing] = {}
        self._approvals: Dict[Tuple[int, str], bool] = {}  # (token_id, operator)

        env.attach(self)
        logger.info(
            f"Exchange deployed, admin={admin}, fee={self._platform_fee_percent} bps "
            f"→ {self._platform_fee_address}"
        )

    # ── Read-only views ───────────────────────────────────────────────

    def get_listing(self, token_id: int) -> Optional[Listing]:
        return self._listings.get(token_id)

    def get_listings(self) -> List[Listing]:
        return [self._listings[t] for t in sorted(self._listings)]

    def get_platform_fee_address(self) -> str:
        return self._platform_fee_address

    def get_platform_fee_percent(self) -> int:
        return self._platform_fee_percent

    def get_max_royalty_percent(self) -> int:
        return self._max_royalty_percent

    def get_admin(self) -> str:
        return self._control.admin

    def is_paused(self) -> bool:
        return self._control.paused

    def is_approved(self, token_id: int, operator: str) -> bool:
        return self._approvals.get((token_id, operator), False)

    @property
    def tokens(self) -> TokenLedger:
        return self._tokens

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

    def set_platform_fee_address(self, caller: str, new_address: str) -> bool:
        with self._env.transaction():
            self._control.require_admin(caller)
            self._control.require_address(new_address)
            self._platform_fee_address = new_address
            self._events.append(EVENT_FEE_ADDRESS_UPDATED, caller, new_address)
        logger.info(f"Platform fee address → {new_address}")
        return True

    def set_platform_fee_percent(self, caller: str, new_percent: int) -> bool:
        with self._env.transaction():
            self._control.require_admin(caller)
            self._platform_fee_percent = _require_fee_percent(new_percent)
            self._events.append(EVENT_FEE_PERCENT_UPDATED, caller, str(new_percent))
        logger.info(f"Platform fee → {new_percent} bps")
        return True

    def set_max_royalty_percent(self, caller: str, new_percent: int) -> bool:
        """Change the royalty ceiling for future listings."""
        with self._env.transaction():
            self._control.require_admin(caller)
            self._max_royalty_percent = _require_royalty_ceiling(new_percent)
            self._events.append(EVENT_MAX_ROYALTY_UPDATED, caller, str(new_percent))
        logger.info(f"Max royalty → {new_percent} bps")
        return True

    # ── Operator approvals ────────────────────────────────────────────

    def _require_owner(self, caller: str, token_id: int) -> None:
        owner = self._tokens.get_owner(token_id)
        if owner is None or owner != caller:
            raise ledger_error(ErrorCode.EXCHANGE_NOT_AUTHORIZED, f"{caller} does not own #{token_id}")

    def approve_operator(self, caller: str, token_id: int, operator: str) -> bool:
        """Let *operator* list *token_id* on the owner's behalf."""
        with self._env.transaction():
            self._control.require_not_paused()
            self._require_owner(caller, token_id)
            self._control.require_address(operator)
            self._approvals[(token_id, operator)] = True
            self._events.append(EVENT_OPERATOR_APPROVED, caller, operator, token_id=token_id)
        logger.info(f"Operator {operator} approved for #{token_id}")
        return True

    def revoke_operator(self, caller: str, token_id: int, operator: str) -> bool:
        with self._env.transaction():
            self._control.require_not_paused()
            self._require_owner(caller, token_id)
            self._approvals.pop((token_id, operator), None)
            self._events.append(EVENT_OPERATOR_REVOKED, caller, operator, token_id=token_id)
        logger.info(f"Operator {operator} revoked for #{token_id}")
        return True

    # ── Listing lifecycle ─────────────────────────────────────────────

    def list(self, caller: str, token_id: int, price: int, royalty_percent: int) -> bool:
        """
        Offer *token_id* at *price*, paying *royalty_percent* bps to its creator.

        An existing listing for the token is replaced.
        """
        with self._env.transaction():
            self._control.require_not_paused()
            if not _is_int(price) or price <= 0:
                raise ledger_error(ErrorCode.INVALID_PRICE, "price must be a positive integer")
            if (
                not _is_int(royalty_percent)
                or royalty_percent < 0
                or royalty_percent > self._max_royalty_percent
            ):
                raise ledger_error(
                    ErrorCode.INVALID_PERCENTAGE,
                    f"royalty {royalty_percent} bps outside 0..{self._max_royalty_percent}",
                )
            owner = self._tokens.get_owner(token_id)
            if owner is None:
                raise ledger_error(ErrorCode.EXCHANGE_TOKEN_NOT_FOUND, f"token #{token_id} does not exist")
            if owner != caller and not self.is_approved(token_id, caller):
                raise ledger_error(
                    ErrorCode.EXCHANGE_NOT_AUTHORIZED,
                    f"{caller} is neither owner nor approved operator of #{token_id}",
                )

            replaced = token_id in self._listings
            self._listings[token_id] = Listing(
                token_id=token_id,
                price=price,
                seller=caller,
                royalty_percent=royalty_percent,
            )
            self._events.append(EVENT_NFT_LISTED, caller, str(price), token_id=token_id)

        logger.info(
            f"{'Relisted' if replaced else 'Listed'} #{token_id} at {price} "
            f"(royalty {royalty_percent} bps) by {caller}"
        )
        return True

    def delist(self, caller: str, token_id: int) -> bool:
        with self._env.transaction():
            self._control.require_not_paused()
            listing = self._listings.get(token_id)
            if listing is None:
                raise ledger_error(ErrorCode.NOT_LISTED, f"token #{token_id} is not listed")
            if listing.seller != caller:
                raise ledger_error(ErrorCode.EXCHANGE_NOT_AUTHORIZED, f"{caller} is not the seller of #{token_id}")

            del self._listings[token_id]
            self._events.append(EVENT_NFT_DELISTED, caller, "", token_id=token_id)

        logger.info(f"Delisted #{token_id}")
        return True

    # ── Settlement ────────────────────────────────────────────────────

    def buy(self, caller: str, token_id: int) -> SaleReceipt:
        """
        Purchase a listed token.

        Pays the platform fee, the creator royalty and the seller proceeds
        from *caller*, moves the token from its current owner to *caller*
        and removes the listing, all as one atomic unit.
        """
        with self._env.transaction():
            self._control.require_not_paused()
            listing = self._listings.get(token_id)
            if listing is None:
                raise ledger_error(ErrorCode.NOT_LISTED, f"token #{token_id} is not listed")
            balance = self._env.get_balance(caller)
            if balance < listing.price:
                raise ledger_error(
                    ErrorCode.INSUFFICIENT_FUNDS,
                    f"{caller} balance {balance} < price {listing.price}",
                )
            metadata = self._tokens.get_metadata(token_id)
            owner = self._tokens.get_owner(token_id)
            if metadata is None or owner is None:
                raise ledger_error(ErrorCode.EXCHANGE_TOKEN_NOT_FOUND, f"token #{token_id} does not exist")
            # A listing outlives a direct transfer; only sell for a seller who can still list
            if listing.seller != owner and not self.is_approved(token_id, listing.seller):
                raise ledger_error(
                    ErrorCode.EXCHANGE_NOT_AUTHORIZED,
                    f"seller {listing.seller} no longer owns or operates #{token_id}",
                )

            split = compute_split(listing.price, self._platform_fee_percent, listing.royalty_percent)
            fee_address = self._platform_fee_address

            legs = (
                (split.platform_fee, fee_address),
                (split.royalty, metadata.creator),
                (split.seller_amount, listing.seller),
            )
            for amount, payee in legs:
                if amount > 0:
                    self._env.transfer_value(amount, caller, payee)
                    logger.debug(f"Settlement leg #{token_id}: {caller} → {payee} {amount}")

            self._tokens.transfer(owner, caller, token_id)
            del self._listings[token_id]
            event = self._events.append(EVENT_NFT_SOLD, caller, str(listing.price), token_id=token_id)

        logger.info(
            f"Sold #{token_id} to {caller} for {split.price} "
            f"(fee {split.platform_fee}, royalty {split.royalty}, seller {split.seller_amount})"
        )
        return SaleReceipt(
            token_id=token_id,
            buyer=caller,
            seller=listing.seller,
            previous_owner=owner,
            creator=metadata.creator,
            platform_fee_address=fee_address,
            split=split,
            event_id=event.event_id,
        )

    # ── Snapshot / restore (environment rollback) ─────────────────────

    def capture(self) -> Dict[str, Any]:
        return {
            "control": self._control.capture(),
            "events": self._events.capture(),
            "fee_address": self._platform_fee_address,
            "fee_percent": self._platform_fee_percent,
            "max_royalty": self._max_royalty_percent,
            "listings": dict(self._listings),
            "approvals": dict(self._approvals),
        }

    def restore(self, state: Dict[str, Any]) -> None:
        self._control.restore(state["control"])
        self._events.restore(state["events"])
        self._platform_fee_address = state["fee_address"]
        self._platform_fee_percent = state["fee_percent"]
        self._max_royalty_percent = state["max_royalty"]
        self._listings = state["listings"]
        self._approvals = state["approvals"]

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin": self._control.admin,
            "paused": self._control.paused,
            "platformFeeAddress": self._platform_fee_address,
            "platformFeePercent": self._platform_fee_percent,
            "maxRoyaltyPercent": self._max_royalty_percent,
            "listings": [listing.to_dict() for listing in self.get_listings()],
            "approvals": [
                {"tokenId": token_id, "operator": operator}
                for (token_id, operator), granted in sorted(self._approvals.items())
                if granted
            ],
            "events": self._events.to_list(),
        }

    @classmethod
    def from_dict(cls, env: ChainEnvironment, tokens: TokenLedger, data: Dict[str, Any]) -> "Exchange":
        exchange = cls(
            env,
            tokens,
            admin=data["admin"],
            platform_fee_address=data.get("platformFeeAddress"),
            platform_fee_percent=int(data.get("platformFeePercent", DEFAULT_PLATFORM_FEE_PERCENT)),
            max_royalty_percent=int(data.get("maxRoyaltyPercent", DEFAULT_MAX_ROYALTY_PERCENT)),
        )
        exchange._control.restore({"admin": data["admin"], "paused": data.get("paused", False)})
        for entry in data.get("listings", []):
            listing = Listing.from_dict(entry)
            exchange._listings[listing.token_id] = listing
        for entry in data.get("approvals", []):
            exchange._approvals[(int(entry["tokenId"]), entry["operator"])] = True
        exchange._events.load(data.get("events", []))
        return exchange

    def __repr__(self) -> str:
        return (
            f"<Exchange listings={len(self._listings)} "
            f"fee={self._platform_fee_percent}bps paused={self._control.paused}>"
        )
