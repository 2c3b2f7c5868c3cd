"""
Ledger primitives shared by the token registry and the exchange.

Provides:
  - ChainEnvironment : asset balances, call serialization, atomic commit
  - AdminControl     : admin principal + pause flag per ledger
  - EventLog         : append-only observational event log
  - CallResult       : error-as-value wrapper around ledger calls
"""

from .admin import (
    AdminControl,
    AdminErrorCodes,
    EXCHANGE_ADMIN_CODES,
    REGISTRY_ADMIN_CODES,
)
from .calls import CallResult, invoke
from .environment import ChainEnvironment, Participant
from .events import EventLog, LedgerEvent

__all__ = [
    "AdminControl",
    "AdminErrorCodes",
    "EXCHANGE_ADMIN_CODES",
    "REGISTRY_ADMIN_CODES",
    "CallResult",
    "invoke",
    "ChainEnvironment",
    "Participant",
    "EventLog",
    "LedgerEvent",
]
