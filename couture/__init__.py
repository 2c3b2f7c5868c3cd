"""
Couture Ledger Package

Fashion NFT registry and exchange ledgers.

Core imports are lazily loaded so that importing a submodule does not pull
in the whole package. For direct module access, import from submodules:

    from couture.tokens import TokenRegistry
    from couture.exchange import Exchange
    from couture.ledger import ChainEnvironment
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'FashionChain':
        from .chain import FashionChain
        return FashionChain
    elif name == 'TokenRegistry':
        from .tokens import TokenRegistry
        return TokenRegistry
    elif name == 'Exchange':
        from .exchange import Exchange
        return Exchange
    elif name == 'ChainEnvironment':
        from .ledger import ChainEnvironment
        return ChainEnvironment
    elif name == 'LedgerError':
        from .exceptions import LedgerError
        return LedgerError
    raise AttributeError(f"module 'couture' has no attribute {name!r}")

__all__ = ['FashionChain', 'TokenRegistry', 'Exchange', 'ChainEnvironment', 'LedgerError']
