"""
events.py - Financial Events and the Event Log

Events are just data:
- Investment / Revenue: dollars flowing into the treasury, minting tokens
- Loan: tokens locked as collateral in exchange for treasury dollars
- Repay: collateral released from the oldest open loan
- Cashout: tokens burned for treasury dollars

The EventLog owns the entered events. It never reorders its own storage;
consumers ask for ordered() which is a stable sort by day, so ties keep
entry order.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from .core import ZERO, normalize_label, to_decimal


# ============================================================================
# EVENT DATA STRUCTURE
# ============================================================================

class EventType(str, Enum):
    """Kind of financial event."""
    INVESTMENT = "investment"
    REVENUE = "revenue"
    LOAN = "loan"
    REPAY = "repay"
    CASHOUT = "cashout"

    @property
    def is_issuance(self) -> bool:
        """True for events that bring dollars in and mint tokens."""
        return self in (EventType.INVESTMENT, EventType.REVENUE)

    @property
    def is_entity_action(self) -> bool:
        """True for events denominated in the acting entity's tokens."""
        return not self.is_issuance


# Suffixes used by the planner's "<label>-<action>" type strings.
_ENTITY_SUFFIXES = {
    "-payback-loan": EventType.REPAY,
    "-loan": EventType.LOAN,
    "-repay": EventType.REPAY,
    "-cashout": EventType.CASHOUT,
}


@dataclass(frozen=True, slots=True)
class Event:
    """
    Immutable dated financial event.

    Attributes:
        day: Day offset from launch (>= 0)
        type: EventType of the event
        amount: Dollars for investment/revenue, tokens for loan/repay/cashout (> 0)
        label: Display name of the payer or acting entity
    """
    day: int
    type: EventType
    amount: Decimal
    label: str

    def __post_init__(self):
        if not isinstance(self.type, EventType):
            object.__setattr__(self, 'type', EventType(self.type))
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', to_decimal(self.amount))
        if isinstance(self.day, bool) or not isinstance(self.day, int):
            raise ValueError(f"Event day must be an int, got {self.day!r}")
        if self.day < 0:
            raise ValueError(f"Event day must be non-negative, got {self.day}")
        if self.amount.is_nan() or self.amount.is_infinite():
            raise ValueError(f"Event amount must be finite, got {self.amount}")
        if self.amount <= ZERO:
            raise ValueError(f"Event amount must be positive, got {self.amount}")
        if not self.label or not self.label.strip():
            raise ValueError("Event label cannot be empty")

    @property
    def entity(self) -> str:
        """Normalized label of the payer or acting entity."""
        return normalize_label(self.label)

    @property
    def type_string(self) -> str:
        """Planner-style type string: "investment", "revenue" or "<label>-<action>"."""
        if self.type.is_issuance:
            return self.type.value
        return f"{self.label}-{self.type.value}"

    def __repr__(self) -> str:
        return f"Event(day {self.day}: {self.type_string} {self.amount} [{self.label}])"


def parse_event_type(type_string: str) -> Tuple[EventType, Optional[str]]:
    """
    Split a planner type string into (EventType, entity label).

    "investment" -> (INVESTMENT, None)
    "Team-loan"  -> (LOAN, "Team")

    Raises:
        ValueError: If the string matches no known event kind.
    """
    for kind in (EventType.INVESTMENT, EventType.REVENUE):
        if type_string == kind.value:
            return kind, None
    for suffix, kind in _ENTITY_SUFFIXES.items():
        if type_string.endswith(suffix) and len(type_string) > len(suffix):
            return kind, type_string[: -len(suffix)]
    raise ValueError(f"Unknown event type: {type_string!r}")


# ============================================================================
# EVENT FACTORY FUNCTIONS
# ============================================================================

def investment_event(day: int, amount, label: str) -> Event:
    """Create an investment of `amount` dollars paid by `label`."""
    return Event(day=day, type=EventType.INVESTMENT, amount=amount, label=label)


def revenue_event(day: int, amount, label: str) -> Event:
    """Create a revenue payment of `amount` dollars credited to `label`."""
    return Event(day=day, type=EventType.REVENUE, amount=amount, label=label)


def loan_event(day: int, tokens, label: str) -> Event:
    """Create a loan collateralized by `tokens` of `label`'s tokens."""
    return Event(day=day, type=EventType.LOAN, amount=tokens, label=label)


def repay_event(day: int, tokens, label: str) -> Event:
    """Create a repayment releasing `tokens` of collateral for `label`."""
    return Event(day=day, type=EventType.REPAY, amount=tokens, label=label)


def cashout_event(day: int, tokens, label: str) -> Event:
    """Create a cash-out burning `tokens` of `label`'s tokens."""
    return Event(day=day, type=EventType.CASHOUT, amount=tokens, label=label)


# ============================================================================
# EVENT LOG
# ============================================================================

class EventLog:
    """
    Entry-ordered collection of events.

    Storage keeps the order events were entered in. ordered() returns a
    stable sort by day, which is the order the state machine folds in.

    Every mutation bumps `version`, which state machines use to invalidate
    memoised results.
    """

    def __init__(self, events: Optional[Iterable[Event]] = None):
        self._events: List[Event] = []
        self.version = 0
        for event in events or ():
            self._append(event)

    def _append(self, event: Event) -> None:
        if not isinstance(event, Event):
            raise TypeError(f"EventLog holds Event records, got {type(event).__name__}")
        self._events.append(event)

    def add(self, event: Event) -> None:
        """Append an event in entry order."""
        self._append(event)
        self.version += 1

    def insert(self, index: int, event: Event) -> None:
        """Insert an event at an entry position."""
        if not isinstance(event, Event):
            raise TypeError(f"EventLog holds Event records, got {type(event).__name__}")
        self._events.insert(index, event)
        self.version += 1

    def replace(self, index: int, event: Event) -> Event:
        """Swap the event at an entry position, returning the old one."""
        if not isinstance(event, Event):
            raise TypeError(f"EventLog holds Event records, got {type(event).__name__}")
        old = self._events[index]
        self._events[index] = event
        self.version += 1
        return old

    def remove(self, index: int) -> Event:
        """Remove and return the event at an entry position."""
        event = self._events.pop(index)
        self.version += 1
        return event

    def clear(self) -> None:
        self._events.clear()
        self.version += 1

    def entries(self) -> Tuple[Event, ...]:
        """Events in entry order."""
        return tuple(self._events)

    def ordered(self) -> List[Event]:
        """Events sorted by day; same-day events keep entry order."""
        return sorted(self._events, key=lambda e: e.day)

    def up_to(self, day: int) -> List[Event]:
        """Day-ordered events dated on or before `day`."""
        return [e for e in self.ordered() if e.day <= day]

    def on_day(self, day: int) -> List[Event]:
        """Events dated exactly `day`, in entry order."""
        return [e for e in self._events if e.day == day]

    def for_label(self, label: str) -> List[Event]:
        """Day-ordered events whose payer or actor normalizes to `label`."""
        key = normalize_label(label)
        return [e for e in self.ordered() if e.entity == key]

    @property
    def max_day(self) -> Optional[int]:
        """Latest event day, or None for an empty log."""
        if not self._events:
            return None
        return max(e.day for e in self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.ordered())

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"EventLog({len(self._events)} events, version={self.version})"
