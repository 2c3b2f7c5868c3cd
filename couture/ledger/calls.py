"""
Error-as-value call wrapper.

Ledger operations raise :class:`~couture.exceptions.LedgerError`.
:func:`invoke` runs one and folds either outcome into a :class:`CallResult`,
which is what the CLI and any host that expects result codes consume.
"""

from typing import Any, Callable, Dict, Optional

from ..exceptions import ErrorCode, ErrorKind, LedgerError
from ..logger import get_logger

logger = get_logger(__name__)


class CallResult:
    """Result of executing a single ledger call."""

    __slots__ = ("ok", "value", "code", "kind", "error")

    def __init__(
        self,
        ok: bool = True,
        value: Any = None,
        code: Optional[ErrorCode] = None,
        kind: Optional[ErrorKind] = None,
        error: str = "",
    ):
        self.ok = ok
        self.value = value
        self.code = code
        self.kind = kind
        self.error = error

    @classmethod
    def failure(cls, exc: LedgerError) -> "CallResult":
        return cls(ok=False, code=exc.code, kind=exc.kind, error=exc.message)

    def unwrap(self) -> Any:
        """Return the value, or raise ValueError if the call failed."""
        if not self.ok:
            raise ValueError(f"call failed with {self.code!r}: {self.error}")
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            value = self.value.to_dict() if hasattr(self.value, "to_dict") else self.value
            return {"ok": True, "value": value}
        return {
            "ok": False,
            "error": int(self.code),
            "name": self.code.name,
            "kind": self.kind.value,
            "message": self.error,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CallResult):
            return NotImplemented
        return (self.ok, self.value, self.code) == (other.ok, other.value, other.code)

    def __repr__(self) -> str:
        if self.ok:
            return f"<CallResult ok value={self.value!r}>"
        return f"<CallResult error={int(self.code)} {self.kind.value}>"


def invoke(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> CallResult:
    """
    Execute a ledger operation and return its outcome as a value.

    Only ledger rejections are folded into the result; anything else is a
    bug and propagates.
    """
    try:
        value = fn(*args, **kwargs)
    except LedgerError as e:
        logger.debug("Call %s rejected: %s", getattr(fn, "__name__", fn), e)
        return CallResult.failure(e)
    return CallResult(ok=True, value=value)
