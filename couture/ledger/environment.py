"""
Chain environment collaborator.

Stands in for the host chain: it keeps the native asset balances used to pay
for purchases, serializes calls with a single re-entrant writer lock, and
gives every ledger call all-or-nothing semantics.

Usage:

    env = ChainEnvironment()
    registry = TokenRegistry(env, admin=ADMIN)
    with env.transaction():
        ...  # every mutation in here commits together or not at all

Attached ledgers expose ``capture()`` / ``restore(state)``. The outermost
transaction captures all of them plus the balance table on entry, and
restores every capture if an exception escapes, so a failure deep inside a
cross-ledger call unwinds the value transfers made before it.
"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

from ..constants import ZERO_ADDRESS
from ..exceptions import ErrorCode, ledger_error
from ..logger import get_logger

logger = get_logger(__name__)


class Participant(Protocol):
    """State holder that can be rolled back by the environment."""

    def capture(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class ChainEnvironment:
    """Asset ledger plus call-level serialization and atomic commit."""

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self._lock = threading.RLock()
        self._depth = 0
        self._participants: List[Participant] = []
        self._balances: Dict[str, int] = {}
        for address, amount in (balances or {}).items():
            self.credit(address, amount)

    # ── Participants ──────────────────────────────────────────────────

    def attach(self, participant: Participant) -> None:
        """Include *participant* in every future transaction snapshot."""
        with self._lock:
            if participant not in self._participants:
                self._participants.append(participant)

    # ── Atomic scope ──────────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator["ChainEnvironment"]:
        """
        Run a ledger call as one atomic unit.

        Re-entrant: nested scopes join the outermost one, which alone
        decides whether the call commits or rolls back.
        """
        with self._lock:
            outermost = self._depth == 0
            snapshot = self._capture_all() if outermost else None
            self._depth += 1
            try:
                yield self
            except Exception:
                if outermost:
                    self._restore_all(snapshot)
                raise
            finally:
                self._depth -= 1

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _capture_all(self) -> Tuple[Dict[str, int], List[Tuple[Participant, Any]]]:
        return dict(self._balances), [(p, p.capture()) for p in self._participants]

    def _restore_all(self, snapshot) -> None:
        balances, states = snapshot
        self._balances = balances
        for participant, state in states:
            participant.restore(state)
        logger.debug("Call reverted, %d ledgers restored", len(states))

    # ── Asset ledger ──────────────────────────────────────────────────

    def get_balance(self, address: str) -> int:
        return self._balances.get(address, 0)

    @property
    def total_supply(self) -> int:
        return sum(self._balances.values())

    def credit(self, address: str, amount: int) -> int:
        """Mint native funds to *address* (genesis allocation / faucet)."""
        if amount <= 0:
            raise ledger_error(ErrorCode.INVALID_AMOUNT, "credit amount must be positive")
        if not address or address == ZERO_ADDRESS:
            raise ledger_error(ErrorCode.EXCHANGE_INVALID_ADDRESS, "cannot credit the zero address")
        with self._lock:
            self._balances[address] = self.get_balance(address) + amount
            return self._balances[address]

    def transfer_value(self, amount: int, sender: str, recipient: str) -> bool:
        """
        Move *amount* from *sender* to *recipient*.

        Raises InsufficientFundsError when the sender cannot cover it.
        A transfer to oneself succeeds without touching the table.
        """
        if amount <= 0:
            raise ledger_error(ErrorCode.INVALID_AMOUNT, "transfer amount must be positive")
        if not recipient or recipient == ZERO_ADDRESS:
            raise ledger_error(ErrorCode.EXCHANGE_INVALID_ADDRESS, "cannot pay the zero address")

        with self.transaction():
            balance = self.get_balance(sender)
            if balance < amount:
                raise ledger_error(
                    ErrorCode.INSUFFICIENT_FUNDS,
                    f"{sender} balance {balance} < {amount}",
                )
            if sender == recipient:
                return True
            self._balances[sender] = balance - amount
            self._balances[recipient] = self.get_balance(recipient) + amount
        logger.debug(f"Value transfer: {sender} → {recipient} {amount}")
        return True

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {"balances": {a: b for a, b in sorted(self._balances.items()) if b > 0}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainEnvironment":
        return cls(balances={a: int(b) for a, b in data.get("balances", {}).items() if int(b) > 0})

    def __repr__(self) -> str:
        return f"<ChainEnvironment accounts={len(self._balances)} ledgers={len(self._participants)}>"
