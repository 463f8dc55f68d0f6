"""
Core types and pure helpers for the Revnet ledger engine.

This module provides the foundational pieces every other module builds on:
1. Decimal context: deterministic arithmetic for replay
2. Constants: fee schedule, loan interest, grace period, UI scaling
3. Type aliases: TokenBalances, LoanAmounts
4. Exceptions: RevnetError and the admission/configuration error types
5. LoanTerms: immutable fee and interest parameters
6. Label normalization: the join key between display names and ledger storage

All functions in this module are pure.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN, ROUND_HALF_UP, getcontext
import re
from typing import Any, Dict


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Replaying the event log must produce bit-identical results on every call,
# so all quantities are Decimal under one global context.
#
# PRECONDITION: No other code should modify the global Decimal context.
# If thread-local contexts are needed, use decimal.localcontext().
#
_REVNET_DECIMAL_CONTEXT = getcontext()
_REVNET_DECIMAL_CONTEXT.prec = 50
_REVNET_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

ZERO = Decimal("0")
ONE = Decimal("1")
INFINITY = Decimal("Infinity")

# Loan origination fees, as a fraction of the loan value.
# The internal fee stays in the treasury; the protocol fee leaves the system.
LOAN_INTERNAL_FEE_RATE = Decimal("0.025")
LOAN_PROTOCOL_FEE_RATE = Decimal("0.035")

# External fee charged on cash-outs (reporting only, not deducted by the fold).
CASHOUT_EXTERNAL_FEE_RATE = Decimal("0.05")

# Continuously compounded annual interest charged on repaid principal,
# waived entirely inside the grace period.
LOAN_INTEREST_RATE = Decimal("0.05")
LOAN_GRACE_PERIOD_DAYS = 180
DAYS_PER_YEAR = 365

# Event amounts are entered in millions ("$M" and "M tokens").
TOKEN_SCALE = Decimal("1000000")

# Quantities with absolute value below this threshold are treated as zero.
QUANTITY_EPSILON = Decimal("1e-12")


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from normalized label to token balance.
TokenBalances = Dict[str, Decimal]

# Mapping from normalized label to outstanding loan dollars.
LoanAmounts = Dict[str, Decimal]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class RevnetError(Exception):
    """Base exception for all Revnet engine errors."""
    pass


class NoStageConfigured(RevnetError):
    """Raised when a stage is resolved against an empty timeline."""
    pass


class SplitsExceedLimit(RevnetError):
    """Raised when a stage's splits add up to more than 100%."""
    pass


class EventValidationError(RevnetError):
    """Base class for events rejected before admission into the event log."""
    pass


class InsufficientTokens(EventValidationError):
    """Raised when a loan or cash-out asks for more tokens than are available."""
    pass


class NoOutstandingLoan(EventValidationError):
    """Raised when a repayment targets a label with no collateralized tokens."""
    pass


class ExcessiveRepayment(EventValidationError):
    """Raised when a repayment releases more tokens than are collateralized."""
    pass


class EventOrderingError(EventValidationError):
    """Raised when an event's day is out of sequence with its neighbours."""
    pass


# ============================================================================
# HELPERS
# ============================================================================

_WHITESPACE = re.compile(r"\s+")


def normalize_label(label: str) -> str:
    """
    Normalize an entity display name to its ledger key.

    Lowercases and strips all whitespace, so "Angel investor",
    "angel Investor" and "AngelInvestor" share one balance.
    """
    return _WHITESPACE.sub("", label.lower())


def to_decimal(value: Any) -> Decimal:
    """Coerce an int, float, str or Decimal to Decimal via its string form."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_tokens(value: Decimal) -> Decimal:
    """Round a token quantity to a whole token, halves away from zero."""
    return value.quantize(ONE, rounding=ROUND_HALF_UP)


# ============================================================================
# LOAN TERMS
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanTerms:
    """
    Immutable fee and interest schedule applied by the state machine.

    Attributes:
        internal_fee_rate: Origination fee retained by the treasury
        protocol_fee_rate: Origination fee that leaves the system
        cashout_fee_rate: External fee reported on cash-outs
        interest_rate: Annual continuously compounded rate on repaid principal
        grace_period_days: Days after origination before interest accrues
        days_per_year: Day-count basis for interest
    """
    internal_fee_rate: Decimal = LOAN_INTERNAL_FEE_RATE
    protocol_fee_rate: Decimal = LOAN_PROTOCOL_FEE_RATE
    cashout_fee_rate: Decimal = CASHOUT_EXTERNAL_FEE_RATE
    interest_rate: Decimal = LOAN_INTEREST_RATE
    grace_period_days: int = LOAN_GRACE_PERIOD_DAYS
    days_per_year: int = DAYS_PER_YEAR

    def __post_init__(self):
        for name in ('internal_fee_rate', 'protocol_fee_rate', 'cashout_fee_rate', 'interest_rate'):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))
            if getattr(self, name) < ZERO:
                raise ValueError(f"LoanTerms.{name} must be non-negative, got {value}")
        if self.grace_period_days < 0:
            raise ValueError(f"grace_period_days must be non-negative, got {self.grace_period_days}")
        if self.days_per_year <= 0:
            raise ValueError(f"days_per_year must be positive, got {self.days_per_year}")


DEFAULT_LOAN_TERMS = LoanTerms()
