"""
calculator.py - Day-by-day driver over the state machine

The calculator replays a Revnet from day 0 to its last event day and collects
one DayResult per day. It is a thin layer: every number comes from the state
machine.

Execution order of run():
1. Fail fast on an empty timeline or splits above 100%
2. Replay days 0..max event day in a single pass
3. Attach each day's events and fees to its state

The Timeseries view packs the per-day results into numpy arrays for the
chart layer.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import numpy as np

from .core import NoStageConfigured, SplitsExceedLimit
from .events import Event, EventType
from .state_machine import DayFees, LedgerState, RevnetStateMachine
from .validation import validate_splits


@dataclass(frozen=True, slots=True)
class DayResult:
    """
    One row of a calculation: the state at the end of `day` and what happened on it.

    Attributes:
        day: Day offset from launch
        state: Ledger state after the day's events
        events: Events dated exactly `day`, in entry order
        fees: Fees re-derived for the day's events
        issuance_price: Dollars per newly minted token on `day`
        cash_out_value_per_token: Bonding-curve value of one token after the day
    """
    day: int
    state: LedgerState
    events: Tuple[Event, ...]
    fees: DayFees
    issuance_price: Decimal
    cash_out_value_per_token: Decimal

    @property
    def revnet_backing(self) -> Decimal:
        return self.state.revnet_backing

    @property
    def total_supply(self) -> Decimal:
        return self.state.total_supply

    def inflow(self) -> Decimal:
        """Dollars brought in by investments and revenue on this day."""
        return sum((e.amount for e in self.events if e.type.is_issuance), Decimal("0"))


@dataclass(frozen=True)
class Timeseries:
    """
    Column view of a calculation for charting.

    All arrays share the index of `days`. Values are floats; the Decimal
    results remain available on the DayResult rows.
    """
    days: np.ndarray
    revnet_backing: np.ndarray
    total_supply: np.ndarray
    issuance_price: np.ndarray
    cash_out_value_per_token: np.ndarray
    outstanding_loans: np.ndarray
    internal_fees: np.ndarray
    external_fees: np.ndarray
    tokens_by_label: Dict[str, np.ndarray]

    def __len__(self) -> int:
        return len(self.days)

    @property
    def backing_per_token(self) -> np.ndarray:
        """Average treasury dollars per token, 0 where the supply is empty."""
        out = np.zeros_like(self.revnet_backing)
        np.divide(self.revnet_backing, self.total_supply, out=out, where=self.total_supply > 0)
        return out


def build_timeseries(results: List[DayResult]) -> Timeseries:
    """Pack DayResult rows into numpy columns."""
    def column(values) -> np.ndarray:
        return np.array([float(v) for v in values], dtype=float)

    labels = sorted({label for r in results for label in r.state.tokens_by_label})
    return Timeseries(
        days=np.array([r.day for r in results], dtype=int),
        revnet_backing=column(r.revnet_backing for r in results),
        total_supply=column(r.total_supply for r in results),
        issuance_price=column(r.issuance_price for r in results),
        cash_out_value_per_token=column(r.cash_out_value_per_token for r in results),
        outstanding_loans=column(r.state.total_outstanding_loans for r in results),
        internal_fees=column(r.fees.internal for r in results),
        external_fees=column(r.fees.external for r in results),
        tokens_by_label={
            label: column(r.state.tokens_for(label) for r in results)
            for label in labels
        },
    )


class Calculator:
    """
    Runs a state machine over its whole event horizon.

    Example:
        calc = Calculator(machine)
        results = calc.run()
        results[-1].state.revnet_backing
        calc.timeseries().revnet_backing    # numpy array, one value per day
    """

    def __init__(self, machine: RevnetStateMachine):
        self.machine = machine
        self.verbose = machine.verbose
        self.results: List[DayResult] = []

    def _check_configuration(self) -> None:
        if len(self.machine.timeline) == 0:
            raise NoStageConfigured("Please add at least one stage before running calculations.")
        error = validate_splits(self.machine.timeline)
        if error is not None:
            raise SplitsExceedLimit(error)

    def run(self, last_day: Optional[int] = None) -> List[DayResult]:
        """
        Replay every day from 0 to `last_day` (default: the last event day).

        Returns:
            One DayResult per day; empty when there are no events.

        Raises:
            NoStageConfigured: If the timeline has no stages.
            SplitsExceedLimit: If any stage's splits sum above 100%.
        """
        self._check_configuration()
        self.results = []

        horizon = self.machine.events.max_day if last_day is None else last_day
        if horizon is None:
            return self.results

        machine = self.machine
        for state in machine.iter_states(horizon):
            day = state.day
            stage = machine.get_stage_at_day(day)
            self.results.append(DayResult(
                day=day,
                state=state,
                events=tuple(machine.events.on_day(day)),
                fees=machine.get_total_fees_for_day(day),
                issuance_price=stage.issuance_price(day),
                cash_out_value_per_token=machine.get_cash_out_value_per_token(day),
            ))

        if self.verbose and self.results:
            final = self.results[-1].state
            print(f"📈 Calculated {len(self.results)} days: "
                  f"backing={final.revnet_backing:.2f}, supply={final.total_supply:.2f}, "
                  f"holders={len(final.tokens_by_label)}")
        return self.results

    def clear_results(self) -> None:
        self.results = []

    def timeseries(self) -> Timeseries:
        """Column view of the last run (runs first if needed)."""
        if not self.results:
            self.run()
        return build_timeseries(self.results)

    def result_for_day(self, day: int) -> Optional[DayResult]:
        """DayResult for `day` from the last run, or None if outside it."""
        if 0 <= day < len(self.results) and self.results[day].day == day:
            return self.results[day]
        for result in self.results:
            if result.day == day:
                return result
        return None

    def events_by_type(self) -> Dict[EventType, int]:
        """Count of events of each type over the last run."""
        counts: Dict[EventType, int] = {}
        for result in self.results:
            for event in result.events:
                counts[event.type] = counts.get(event.type, 0) + 1
        return counts


def issuance_price_series(machine: RevnetStateMachine, last_day: int, first_day: int = 0) -> np.ndarray:
    """Issuance price for every day in [first_day, last_day] as floats."""
    return np.array(
        [float(machine.get_issuance_price(day)) for day in range(first_day, last_day + 1)],
        dtype=float,
    )
