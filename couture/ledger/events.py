"""
Append-only event log shared by the token registry and the exchange.

Each ledger owns one log. Entries are keyed by an auto-incrementing ID that
starts at 1; they are observational only and never consulted for
authorization.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from ..constants import MAX_EVENT_DATA_LENGTH, NO_TOKEN_ID, VALID_EVENT_TYPE_PATTERN


@dataclass(frozen=True)
class LedgerEvent:
    """One entry of a ledger's event log."""
    event_id: int
    event_type: str
    token_id: int
    sender: str
    data: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.event_id,
            "eventType": self.event_type,
            "tokenId": self.token_id,
            "sender": self.sender,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerEvent":
        return cls(
            event_id=int(data["id"]),
            event_type=data["eventType"],
            token_id=int(data.get("tokenId", NO_TOKEN_ID)),
            sender=data["sender"],
            data=data.get("data", ""),
        )


class EventLog:
    """Append-only sequence of :class:`LedgerEvent`."""

    def __init__(self, max_data_length: int = MAX_EVENT_DATA_LENGTH):
        self._events: List[LedgerEvent] = []
        self._max_data_length = max_data_length

    def append(
        self,
        event_type: str,
        sender: str,
        data: str = "",
        token_id: int = NO_TOKEN_ID,
    ) -> LedgerEvent:
        """Record an event. Payloads longer than the bound are truncated."""
        if not VALID_EVENT_TYPE_PATTERN.match(event_type):
            raise ValueError(f"Malformed event type: {event_type!r}")
        event = LedgerEvent(
            event_id=self.last_event_id + 1,
            event_type=event_type,
            token_id=token_id,
            sender=sender,
            data=str(data)[: self._max_data_length],
        )
        self._events.append(event)
        return event

    # ── Queries ───────────────────────────────────────────────────────

    @property
    def last_event_id(self) -> int:
        return len(self._events)

    def get(self, event_id: int) -> Optional[LedgerEvent]:
        if 1 <= event_id <= len(self._events):
            return self._events[event_id - 1]
        return None

    def of_type(self, event_type: str) -> List[LedgerEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def for_token(self, token_id: int) -> List[LedgerEvent]:
        return [e for e in self._events if e.token_id == token_id]

    def all(self) -> List[LedgerEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[LedgerEvent]:
        return iter(list(self._events))

    # ── Snapshot / restore ────────────────────────────────────────────

    def capture(self) -> int:
        return len(self._events)

    def restore(self, mark: int) -> None:
        del self._events[mark:]

    # ── Serialization ─────────────────────────────────────────────────

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    def load(self, entries: List[Dict[str, Any]]) -> None:
        events = [LedgerEvent.from_dict(e) for e in entries]
        for expected_id, event in enumerate(events, start=1):
            if event.event_id != expected_id:
                raise ValueError(
                    f"Event log is not contiguous: expected id {expected_id}, got {event.event_id}"
                )
        self._events = events

    def __repr__(self) -> str:
        return f"<EventLog events={len(self._events)}>"
