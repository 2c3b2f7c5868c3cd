"""
Admin-gated control plane shared by both ledgers.

Each ledger owns one :class:`AdminControl` holding its admin principal and
pause flag. The registry and the exchange report the same failures under
different numeric codes, so the codes are supplied per instance.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..constants import EVENT_ADMIN_TRANSFERRED, EVENT_PAUSE_TOGGLED, ZERO_ADDRESS
from ..exceptions import ErrorCode, ledger_error
from ..logger import get_logger
from .events import EventLog

logger = get_logger(__name__)


@dataclass(frozen=True)
class AdminErrorCodes:
    """Codes an :class:`AdminControl` raises for its ledger."""
    not_authorized: ErrorCode
    paused: ErrorCode
    invalid_address: ErrorCode


REGISTRY_ADMIN_CODES = AdminErrorCodes(
    not_authorized=ErrorCode.NOT_AUTHORIZED,
    paused=ErrorCode.PAUSED,
    invalid_address=ErrorCode.INVALID_ADDRESS,
)

EXCHANGE_ADMIN_CODES = AdminErrorCodes(
    not_authorized=ErrorCode.EXCHANGE_NOT_AUTHORIZED,
    paused=ErrorCode.EXCHANGE_PAUSED,
    invalid_address=ErrorCode.EXCHANGE_INVALID_ADDRESS,
)


class AdminControl:
    """Admin principal and pause flag of one ledger."""

    def __init__(self, admin: str, events: EventLog, codes: AdminErrorCodes, name: str = "ledger"):
        if not admin or admin == ZERO_ADDRESS:
            raise ledger_error(codes.invalid_address, "admin cannot be the zero address")
        self._admin = admin
        self._paused = False
        self._events = events
        self._codes = codes
        self._name = name

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def codes(self) -> AdminErrorCodes:
        return self._codes

    # ── Guards ────────────────────────────────────────────────────────

    def require_admin(self, caller: str) -> None:
        if caller != self._admin:
            raise ledger_error(self._codes.not_authorized, f"{caller} is not the {self._name} admin")

    def require_not_paused(self) -> None:
        if self._paused:
            raise ledger_error(self._codes.paused, f"{self._name} is paused")

    def require_address(self, address: str) -> None:
        if not address or address == ZERO_ADDRESS:
            raise ledger_error(self._codes.invalid_address, "zero address not allowed")

    # ── Mutations (callers hold the environment transaction) ──────────

    def transfer_admin(self, caller: str, new_admin: str) -> bool:
        self.require_admin(caller)
        self.require_address(new_admin)
        self._admin = new_admin
        self._events.append(EVENT_ADMIN_TRANSFERRED, caller, new_admin)
        logger.warning(f"{self._name} admin transferred: {caller} → {new_admin}")
        return True

    def set_paused(self, caller: str, flag: bool) -> bool:
        self.require_admin(caller)
        self._paused = bool(flag)
        self._events.append(EVENT_PAUSE_TOGGLED, caller, "paused" if self._paused else "unpaused")
        if self._paused:
            logger.warning(f"{self._name} PAUSED by {caller}")
        else:
            logger.info(f"{self._name} unpaused by {caller}")
        return self._paused

    # ── Snapshot / serialization ──────────────────────────────────────

    def capture(self) -> Dict[str, Any]:
        return {"admin": self._admin, "paused": self._paused}

    def restore(self, state: Dict[str, Any]) -> None:
        self._admin = state["admin"]
        self._paused = bool(state["paused"])

    def __repr__(self) -> str:
        return f"<AdminControl {self._name} admin={self._admin} paused={self._paused}>"
