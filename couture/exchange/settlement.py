"""
Sale settlement arithmetic.

A sale price is split three ways in integer basis points:

    platform_fee  = price * platform_fee_percent // 10000
    royalty       = price * royalty_percent      // 10000
    seller_amount = price - platform_fee - royalty

Both percentage shares truncate toward zero and the seller receives the
remainder, so the three legs always sum to the price exactly.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..constants import BASIS_POINTS


@dataclass(frozen=True)
class SaleSplit:
    """How a sale price is divided between platform, creator and seller."""
    price: int
    platform_fee: int
    royalty: int
    seller_amount: int

    @property
    def total(self) -> int:
        return self.platform_fee + self.royalty + self.seller_amount


def bps_share(amount: int, bps: int) -> int:
    """*amount* × *bps* / 10000, truncated."""
    return amount * bps // BASIS_POINTS


def compute_split(price: int, platform_fee_percent: int, royalty_percent: int) -> SaleSplit:
    """Split *price* into platform fee, royalty and seller remainder."""
    if price <= 0:
        raise ValueError("price must be positive")
    if platform_fee_percent < 0 or royalty_percent < 0:
        raise ValueError("percentages cannot be negative")
    if platform_fee_percent + royalty_percent > BASIS_POINTS:
        raise ValueError(
            f"fee {platform_fee_percent} + royalty {royalty_percent} exceeds {BASIS_POINTS} bps"
        )

    platform_fee = bps_share(price, platform_fee_percent)
    royalty = bps_share(price, royalty_percent)
    return SaleSplit(
        price=price,
        platform_fee=platform_fee,
        royalty=royalty,
        seller_amount=price - platform_fee - royalty,
    )


@dataclass(frozen=True)
class SaleReceipt:
    """Returned by a successful purchase."""
    token_id: int
    buyer: str
    seller: str
    previous_owner: str
    creator: str
    platform_fee_address: str
    split: SaleSplit
    event_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenId": self.token_id,
            "buyer": self.buyer,
            "seller": self.seller,
            "previousOwner": self.previous_owner,
            "creator": self.creator,
            "platformFeeAddress": self.platform_fee_address,
            "price": self.split.price,
            "platformFee": self.split.platform_fee,
            "royalty": self.split.royalty,
            "sellerAmount": self.split.seller_amount,
            "eventId": self.event_id,
        }
