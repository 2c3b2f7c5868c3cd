"""
Fashion NFT Exchange

Fixed-price marketplace over the token registry.

Components:
  - Exchange            : listings, operator approvals, purchase settlement
  - TokenLedger         : injected read/transfer interface to a token ledger
  - RegistryTokenLedger : TokenLedger backed by a TokenRegistry
  - compute_split       : platform fee / royalty / seller split in basis points
"""

from .interfaces import (
    RegistryTokenLedger,
    TokenLedger,
)
from .marketplace import (
    Exchange,
    Listing,
)
from .settlement import (
    SaleReceipt,
    SaleSplit,
    bps_share,
    compute_split,
)

__all__ = [
    "Exchange",
    "Listing",
    "TokenLedger",
    "RegistryTokenLedger",
    "SaleReceipt",
    "SaleSplit",
    "bps_share",
    "compute_split",
]
