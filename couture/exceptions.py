"""
Couture Exceptions

Typed errors for the token registry and the exchange. Every rejected call
raises a ``LedgerError`` carrying a numeric ``ErrorCode`` and its
``ErrorKind`` category; callers that want error values instead of
exceptions go through ``couture.ledger.calls.invoke``.
"""

from enum import Enum, IntEnum
from typing import Dict, Optional, Type


class ErrorKind(str, Enum):
    """Category of a ledger failure."""
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not-found"
    ALREADY_EXISTS = "already-exists"
    INVALID_INPUT = "invalid-input"
    LIMIT_EXCEEDED = "limit-exceeded"
    PAUSED = "paused"
    INSUFFICIENT_FUNDS = "insufficient-funds"


class ErrorCode(IntEnum):
    """Numeric error codes. 1xx: token registry, 2xx: exchange."""
    NOT_AUTHORIZED = 100
    TOKEN_NOT_FOUND = 101
    INVALID_URI = 103
    NOT_OWNER = 104
    PAUSED = 105
    INVALID_ADDRESS = 106
    MINT_LIMIT_EXCEEDED = 107
    UNAUTHORIZED_CREATOR = 108
    DUPLICATE_CREATOR = 109
    CAPACITY_EXCEEDED = 110

    EXCHANGE_NOT_AUTHORIZED = 200
    NOT_LISTED = 202
    INSUFFICIENT_FUNDS = 203
    EXCHANGE_PAUSED = 204
    EXCHANGE_INVALID_ADDRESS = 205
    INVALID_PRICE = 206
    INVALID_AMOUNT = 207
    INVALID_PERCENTAGE = 208
    EXCHANGE_TOKEN_NOT_FOUND = 209


class CoutureException(Exception):
    """Base exception for Couture."""
    pass


class ConfigurationError(CoutureException):
    """Configuration error."""
    pass


class LedgerError(CoutureException):
    """
    A ledger call was rejected.

    No state was changed and no event was appended.
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, code: ErrorCode, message: Optional[str] = None):
        self.code = ErrorCode(code)
        self.message = message or self.code.name.lower().replace("_", "-")
        super().__init__(f"[{int(self.code)}] {self.message}")

    def to_dict(self) -> Dict[str, object]:
        return {
            "code": int(self.code),
            "name": self.code.name,
            "kind": self.kind.value,
            "message": self.message,
        }


class UnauthorizedError(LedgerError):
    """Caller lacks the admin, owner, creator or registered-creator role."""
    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(LedgerError):
    """Token, metadata or listing is absent."""
    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(LedgerError):
    """Duplicate registration."""
    kind = ErrorKind.ALREADY_EXISTS


class InvalidInputError(LedgerError):
    """Empty URI, zero price, zero address or out-of-range percentage."""
    kind = ErrorKind.INVALID_INPUT


class LimitExceededError(LedgerError):
    """Mint cap or registry capacity reached."""
    kind = ErrorKind.LIMIT_EXCEEDED


class PausedError(LedgerError):
    """Operation blocked by the pause flag."""
    kind = ErrorKind.PAUSED


class InsufficientFundsError(LedgerError):
    """Payer balance is below the required amount."""
    kind = ErrorKind.INSUFFICIENT_FUNDS


ERROR_CLASSES: Dict[ErrorCode, Type[LedgerError]] = {
    ErrorCode.NOT_AUTHORIZED: UnauthorizedError,
    ErrorCode.TOKEN_NOT_FOUND: NotFoundError,
    ErrorCode.INVALID_URI: InvalidInputError,
    ErrorCode.NOT_OWNER: UnauthorizedError,
    ErrorCode.PAUSED: PausedError,
    ErrorCode.INVALID_ADDRESS: InvalidInputError,
    ErrorCode.MINT_LIMIT_EXCEEDED: LimitExceededError,
    ErrorCode.UNAUTHORIZED_CREATOR: UnauthorizedError,
    ErrorCode.DUPLICATE_CREATOR: AlreadyExistsError,
    ErrorCode.CAPACITY_EXCEEDED: LimitExceededError,
    ErrorCode.EXCHANGE_NOT_AUTHORIZED: UnauthorizedError,
    ErrorCode.NOT_LISTED: NotFoundError,
    ErrorCode.INSUFFICIENT_FUNDS: InsufficientFundsError,
    ErrorCode.EXCHANGE_PAUSED: PausedError,
    ErrorCode.EXCHANGE_INVALID_ADDRESS: InvalidInputError,
    ErrorCode.INVALID_PRICE: InvalidInputError,
    ErrorCode.INVALID_AMOUNT: InvalidInputError,
    ErrorCode.INVALID_PERCENTAGE: InvalidInputError,
    ErrorCode.EXCHANGE_TOKEN_NOT_FOUND: NotFoundError,
}


def ledger_error(code: ErrorCode, message: Optional[str] = None) -> LedgerError:
    """Build the exception class that matches *code*."""
    return ERROR_CLASSES[ErrorCode(code)](code, message)
