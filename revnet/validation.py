"""
validation.py - Admission checks for events and stages

The ledger fold degrades gracefully on economically invalid events (loans
are clamped, oversized cash-outs drive balances negative). Rejection lives
here instead, and runs before an event enters the log:

    validate_*()   return an error message for display, or None
    admit_*()      raise the typed error, or add the item

Event amounts are checked against the state as of the day before the event,
so several same-day events are each checked against the same snapshot.
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Sequence

from .core import (
    ZERO, ONE,
    EventValidationError, InsufficientTokens, NoOutstandingLoan,
    ExcessiveRepayment, EventOrderingError, SplitsExceedLimit,
)
from .events import Event, EventType
from .formatting import format_tokens
from .stages import StageDefinition, StageTimeline
from .state_machine import RevnetStateMachine


# ============================================================================
# SPLITS
# ============================================================================

def _splits_error(position: int, stage: StageDefinition) -> Optional[SplitsExceedLimit]:
    total = stage.total_split
    if total > ONE:
        percent = (total * 100).normalize()
        return SplitsExceedLimit(
            f"Stage {position} has splits totaling {percent:f}%, which exceeds 100%."
        )
    return None


def validate_splits(stages: Iterable[StageDefinition]) -> Optional[str]:
    """
    Check that no stage hands out more than 100% of minted tokens.

    Returns:
        Message naming the first offending stage (1-based), or None.
    """
    for position, stage in enumerate(stages, start=1):
        error = _splits_error(position, stage)
        if error is not None:
            return str(error)
    return None


def admit_stage(timeline: StageTimeline, stage: StageDefinition) -> StageDefinition:
    """
    Append a stage to the timeline after checking its splits.

    Raises:
        SplitsExceedLimit: If the stage's splits sum above 100%.
    """
    error = _splits_error(len(timeline) + 1, stage)
    if error is not None:
        raise error
    timeline.add(stage)
    return stage


# ============================================================================
# ORDERING
# ============================================================================

def find_out_of_order(entries: Sequence[Event]) -> List[int]:
    """Entry positions whose day is earlier than the entry before them."""
    return [
        i for i in range(1, len(entries))
        if entries[i].day < entries[i - 1].day
    ]


def _ordering_error(entries: Sequence[Event], index: int, event: Event) -> Optional[EventOrderingError]:
    earlier = entries[:index]
    later = entries[index:]
    if any(e.day > event.day for e in earlier) or any(e.day < event.day for e in later):
        return EventOrderingError(
            f"Events must be ordered by day. Event {index + 1} (day {event.day}) "
            f"is out of order. Please reorder events by day."
        )
    return None


def validate_event_ordering(entries: Sequence[Event], index: int) -> Optional[str]:
    """
    Check that the entry at `index` sits in day order among its neighbours.

    The engine always re-sorts by day, so this is advisory: it flags logs
    whose entry order disagrees with the order they will be replayed in.

    Args:
        entries: Events in entry order
        index: Position of the event to check
    """
    event = entries[index]
    others = list(entries[:index]) + list(entries[index + 1:])
    error = _ordering_error(others, index, event)
    return str(error) if error is not None else None


# ============================================================================
# AMOUNTS
# ============================================================================

def _amount_error(machine: RevnetStateMachine, event: Event) -> Optional[EventValidationError]:
    if event.type.is_issuance:
        return None

    before = event.day - 1
    if event.type == EventType.LOAN:
        available = machine.get_available_tokens(event.label, before)
        if event.amount > available:
            return InsufficientTokens(
                f"Cannot collateralize {format_tokens(event.amount)} tokens. "
                f"Only {format_tokens(available)} tokens available."
            )
    elif event.type == EventType.REPAY:
        collateralized = machine.get_collateralized_tokens(event.label, before)
        if collateralized <= ZERO:
            return NoOutstandingLoan(f"{event.label} has no outstanding loans to repay.")
        if event.amount > collateralized:
            return ExcessiveRepayment(
                f"Cannot uncollateralize {format_tokens(event.amount)} tokens. "
                f"Only {format_tokens(collateralized)} tokens collateralized."
            )
    elif event.type == EventType.CASHOUT:
        available = machine.get_available_tokens(event.label, before)
        if event.amount > available:
            return InsufficientTokens(
                f"Cannot cash out {format_tokens(event.amount)} tokens. "
                f"Only {format_tokens(available)} tokens available."
            )
    return None


def validate_event_amount(machine: RevnetStateMachine, event: Event) -> Optional[str]:
    """
    Check an entity action against the state as of the day before it.

        loan      tokens must not exceed the label's available tokens
        repay     the label must have collateral locked, and at least `tokens`
        cashout   tokens must not exceed the label's available tokens

    Investments and revenue always pass.

    Returns:
        Display message, or None if the event is admissible.
    """
    error = _amount_error(machine, event)
    return str(error) if error is not None else None


# ============================================================================
# ADMISSION
# ============================================================================

def admit_event(
    machine: RevnetStateMachine,
    event: Event,
    index: Optional[int] = None,
    check_ordering: bool = True,
) -> Event:
    """
    Validate an event and add it to the machine's event log.

    Args:
        machine: State machine whose log receives the event
        event: Event to admit
        index: Entry position to insert at (default: append)
        check_ordering: Reject events that would break day order in the log

    Returns:
        The admitted event

    Raises:
        EventOrderingError: If check_ordering and the entry position breaks day order.
        InsufficientTokens: If a loan or cash-out exceeds available tokens.
        NoOutstandingLoan: If a repay targets a label with nothing collateralized.
        ExcessiveRepayment: If a repay exceeds collateralized tokens.
    """
    entries = machine.events.entries()
    position = len(entries) if index is None else index

    if check_ordering:
        error = _ordering_error(entries, position, event)
        if error is not None:
            raise error

    error = _amount_error(machine, event)
    if error is not None:
        raise error

    if index is None:
        machine.events.add(event)
    else:
        machine.events.insert(index, event)
    return event
