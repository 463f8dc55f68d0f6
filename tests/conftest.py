"""
conftest.py - Shared pytest fixtures for Revnet tests

Provides common fixtures used across unit, functional and conformance tests:
- Stage timelines (flat, with cuts, multi-stage)
- State machines over the sample event log
- Comparison utilities
"""

import pytest
from decimal import Decimal
from typing import List

from revnet import (
    Event,
    EventLog,
    LedgerState,
    RevnetStateMachine,
    StageDefinition,
    StageTimeline,
    investment_event,
    loan_event,
    repay_event,
    cashout_event,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def make_machine(events: List[Event], stages: List[StageDefinition]) -> RevnetStateMachine:
    """Quiet state machine over fresh containers."""
    return RevnetStateMachine(EventLog(events), StageTimeline(stages), verbose=False)


def states_equal(a: LedgerState, b: LedgerState) -> bool:
    """Field-by-field equality of two ledger states."""
    return (
        a.day == b.day
        and a.total_supply == b.total_supply
        and a.revnet_backing == b.revnet_backing
        and dict(a.tokens_by_label) == dict(b.tokens_by_label)
        and dict(a.day_labeled_investor_loans) == dict(b.day_labeled_investor_loans)
        and dict(a.loan_history) == dict(b.loan_history)
    )


def sample_events() -> List[Event]:
    """The sample Revnet: invest, borrow, partially repay, cash out."""
    return [
        investment_event(0, 10, "Angel investor"),
        loan_event(1, 1, "Angel investor"),
        repay_event(280, Decimal("0.5"), "Angel investor"),
        cashout_event(281, Decimal("0.5"), "Angel investor"),
    ]


# =============================================================================
# STAGE FIXTURES
# =============================================================================

@pytest.fixture
def team_stage():
    """Team 50%, no cuts, 10% cash-out tax."""
    return StageDefinition(splits={"Team": Decimal("0.5")}, cash_out_tax=Decimal("0.1"))


@pytest.fixture
def untaxed_stage():
    """No splits, no cuts, no tax: the payer receives every token."""
    return StageDefinition()


@pytest.fixture
def cut_stage():
    """Team 50%, 50% issuance cut every 90 days, 10% tax."""
    return StageDefinition(
        splits={"Team": Decimal("0.5")},
        has_cuts=True,
        issuance_cut=Decimal("0.5"),
        cut_period=90,
        cash_out_tax=Decimal("0.1"),
    )


@pytest.fixture
def two_stage_timeline():
    """100-day launch stage followed by an open-ended stage."""
    return StageTimeline([
        StageDefinition(duration_days=100, splits={"Team": Decimal("0.5")}, cash_out_tax=Decimal("0.1")),
        StageDefinition(duration_days=30, splits={"Team": Decimal("0.2")}, cash_out_tax=Decimal("0.3")),
    ])


# =============================================================================
# STATE MACHINE FIXTURES
# =============================================================================

@pytest.fixture
def sample_machine(team_stage):
    """State machine over the sample event log."""
    return make_machine(sample_events(), [team_stage])


@pytest.fixture
def funded_machine(team_stage):
    """State machine with a single $10 investment on day 0."""
    return make_machine([investment_event(0, 10, "Angel investor")], [team_stage])


@pytest.fixture
def machine_factory():
    """Build quiet state machines from event and stage lists."""
    return make_machine


@pytest.fixture
def state_comparer():
    """Field-by-field LedgerState equality."""
    return states_equal
