"""
revnet - Revnet Ledger Engine

Deterministic replay of a Revnet treasury: token issuance against incoming
capital, token-collateralized loans, repayment with interest, and cash-outs
against a bonding curve.

Usage:
    from revnet import (
        RevnetStateMachine, StageTimeline, StageDefinition, EventLog,
        investment_event, loan_event,
    )

    timeline = StageTimeline([
        StageDefinition(splits={"Team": 0.5}, cash_out_tax=0.1),
    ])
    events = EventLog([
        investment_event(0, 10, "Angel investor"),
        loan_event(1, 1, "Angel investor"),
    ])
    machine = RevnetStateMachine(events, timeline)

    state = machine.get_state_at_day(1)
    state.revnet_backing                               # Decimal('9.11275')
    machine.get_collateralized_tokens("Angel investor", 1)   # Decimal('1')
"""

# Core types
from .core import (
    RevnetError,
    NoStageConfigured,
    SplitsExceedLimit,
    EventValidationError,
    InsufficientTokens,
    NoOutstandingLoan,
    ExcessiveRepayment,
    EventOrderingError,
    LoanTerms,
    DEFAULT_LOAN_TERMS,
    normalize_label,
    round_tokens,
    TokenBalances,
    LoanAmounts,
    LOAN_INTERNAL_FEE_RATE,
    LOAN_PROTOCOL_FEE_RATE,
    CASHOUT_EXTERNAL_FEE_RATE,
    LOAN_INTEREST_RATE,
    LOAN_GRACE_PERIOD_DAYS,
    DAYS_PER_YEAR,
    TOKEN_SCALE,
)

# Events
from .events import (
    Event,
    EventType,
    EventLog,
    parse_event_type,
    investment_event,
    revenue_event,
    loan_event,
    repay_event,
    cashout_event,
)

# Stages
from .stages import (
    StageDefinition,
    StageConfig,
    StageTimeline,
    default_stage,
    issuance_price,
)

# Bonding curve
from .bonding_curve import (
    calculate_cash_out_value_for_event,
    cash_out_curve,
    cash_out_share,
    cash_out_value_per_token,
)

# Loans - pure function architecture
from .loans import (
    LoanRecord,
    FeeBreakdown,
    LiabilityBreakdown,
    calculate_years_elapsed,
    calculate_interest_rate,
    calculate_loan_fees,
    calculate_collateralized_tokens,
    calculate_outstanding_liability,
)

# State machine
from .state_machine import (
    LedgerState,
    DayFees,
    RevnetStateMachine,
    fold_events,
)

# Validation
from .validation import (
    validate_splits,
    validate_event_amount,
    validate_event_ordering,
    find_out_of_order,
    admit_event,
    admit_stage,
)

# Calculator
from .calculator import (
    Calculator,
    DayResult,
    Timeseries,
    build_timeseries,
    issuance_price_series,
)

# Scenarios
from .scenarios import (
    Scenario,
    DEFAULT_SCENARIO,
    SCENARIOS,
    get_scenario,
    operations_for,
    GENERIC_INVESTOR_LABEL,
    GENERIC_REVENUE_LABEL,
    event_from_record,
    events_from_records,
)

# Formatting
from .formatting import format_currency, format_tokens

__all__ = [
    # Core
    'RevnetError', 'NoStageConfigured', 'SplitsExceedLimit',
    'EventValidationError', 'InsufficientTokens', 'NoOutstandingLoan',
    'ExcessiveRepayment', 'EventOrderingError',
    'LoanTerms', 'DEFAULT_LOAN_TERMS', 'normalize_label', 'round_tokens',
    'TokenBalances', 'LoanAmounts',
    'LOAN_INTERNAL_FEE_RATE', 'LOAN_PROTOCOL_FEE_RATE', 'CASHOUT_EXTERNAL_FEE_RATE',
    'LOAN_INTEREST_RATE', 'LOAN_GRACE_PERIOD_DAYS', 'DAYS_PER_YEAR', 'TOKEN_SCALE',
    # Events
    'Event', 'EventType', 'EventLog', 'parse_event_type',
    'investment_event', 'revenue_event', 'loan_event', 'repay_event', 'cashout_event',
    # Stages
    'StageDefinition', 'StageConfig', 'StageTimeline', 'default_stage', 'issuance_price',
    # Bonding curve
    'calculate_cash_out_value_for_event', 'cash_out_curve', 'cash_out_share',
    'cash_out_value_per_token',
    # Loans
    'LoanRecord', 'FeeBreakdown', 'LiabilityBreakdown',
    'calculate_years_elapsed', 'calculate_interest_rate', 'calculate_loan_fees',
    'calculate_collateralized_tokens', 'calculate_outstanding_liability',
    # State machine
    'LedgerState', 'DayFees', 'RevnetStateMachine', 'fold_events',
    # Validation
    'validate_splits', 'validate_event_amount', 'validate_event_ordering',
    'find_out_of_order', 'admit_event', 'admit_stage',
    # Calculator
    'Calculator', 'DayResult', 'Timeseries', 'build_timeseries', 'issuance_price_series',
    # Scenarios
    'Scenario', 'DEFAULT_SCENARIO', 'SCENARIOS', 'get_scenario', 'operations_for',
    'GENERIC_INVESTOR_LABEL', 'GENERIC_REVENUE_LABEL',
    'event_from_record', 'events_from_records',
    # Formatting
    'format_currency', 'format_tokens',
]

__version__ = '1.0.0'
