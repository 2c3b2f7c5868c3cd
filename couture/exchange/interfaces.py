"""
Cross-ledger interface from the exchange to a token ledger.

The exchange never holds a concrete registry; it is handed something that
satisfies :class:`TokenLedger`, which lets tests substitute a stub.
"""

from typing import Optional, Protocol, runtime_checkable

from ..tokens.registry import TokenMetadata, TokenRegistry


@runtime_checkable
class TokenLedger(Protocol):
    """Read and transfer capability the exchange needs from a token ledger."""

    def get_owner(self, token_id: int) -> Optional[str]: ...

    def get_metadata(self, token_id: int) -> Optional[TokenMetadata]: ...

    def transfer(self, sender: str, recipient: str, token_id: int) -> bool: ...


class RegistryTokenLedger:
    """
    Adapts a :class:`TokenRegistry` to :class:`TokenLedger`.

    A transfer is executed with *sender* as the registry caller, so the
    registry's own owner, pause and recipient checks still apply.
    """

    def __init__(self, registry: TokenRegistry):
        self._registry = registry

    @property
    def registry(self) -> TokenRegistry:
        return self._registry

    def get_owner(self, token_id: int) -> Optional[str]:
        return self._registry.get_owner(token_id)

    def get_metadata(self, token_id: int) -> Optional[TokenMetadata]:
        return self._registry.get_metadata(token_id)

    def transfer(self, sender: str, recipient: str, token_id: int) -> bool:
        return self._registry.transfer(sender, token_id, recipient)
