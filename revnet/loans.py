"""
loans.py - Token-collateralized loans

A loan locks some of an entity's tokens as collateral and pays out the
bonding-curve value of those tokens from the treasury. The tokens stay in the
entity's balance but are no longer available.

ARCHITECTURE (Pure Function Pattern):
=====================================

1. FROZEN DATACLASSES:
   - LoanRecord: one loan line, replaced (never mutated) on repayment
   - FeeBreakdown / LiabilityBreakdown: typed results

2. PURE CALCULATION FUNCTIONS (calculate_*):
   - All inputs explicit, no state machine access
   - Shared by the ledger fold and the read-only queries

Key Formulas:
    years_elapsed = max(0, (days_elapsed - grace_period) / 365)
    interest_rate = exp(0.05 * years_elapsed) - 1
    origination fees = 2.5% internal (kept) + 3.5% protocol (leaves system)
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple

from .core import (
    ZERO, QUANTITY_EPSILON,
    LoanTerms, DEFAULT_LOAN_TERMS,
    to_decimal,
)


# ============================================================================
# FROZEN DATACLASSES
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanRecord:
    """
    Immutable loan line for one entity.

    Attributes:
        day: Origination day
        amount: Outstanding dollar value (bonding-curve value of the remaining
                collateral as of the last repayment)
        tokens_locked: Collateral locked at origination
        remaining_tokens: Collateral still locked
    """
    day: int
    amount: Decimal
    tokens_locked: Decimal
    remaining_tokens: Decimal

    def __post_init__(self):
        for name in ('amount', 'tokens_locked', 'remaining_tokens'):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))
        if self.remaining_tokens > self.tokens_locked:
            raise ValueError(
                f"remaining_tokens {self.remaining_tokens} exceeds tokens_locked {self.tokens_locked}"
            )

    @property
    def is_outstanding(self) -> bool:
        """True while any collateral remains locked."""
        return self.remaining_tokens > QUANTITY_EPSILON

    def after_repayment(self, remaining_tokens: Decimal, amount: Decimal) -> LoanRecord:
        """Return the record with reduced collateral and re-valued amount."""
        if remaining_tokens > self.remaining_tokens:
            raise ValueError("Repayment cannot increase locked collateral")
        return replace(self, remaining_tokens=remaining_tokens, amount=amount)


@dataclass(frozen=True, slots=True)
class FeeBreakdown:
    """Fees charged on a loan event: internal stays in the treasury, protocol leaves."""
    internal: Decimal
    protocol: Decimal

    @property
    def total(self) -> Decimal:
        return self.internal + self.protocol


@dataclass(frozen=True, slots=True)
class LiabilityBreakdown:
    """Read-only projection of what an entity owes on its open loans."""
    principal: Decimal
    interest: Decimal

    @property
    def total(self) -> Decimal:
        return self.principal + self.interest


# ============================================================================
# PURE CALCULATION FUNCTIONS
# ============================================================================

def calculate_years_elapsed(days_elapsed: int, terms: LoanTerms = DEFAULT_LOAN_TERMS) -> Decimal:
    """Interest-bearing years after the grace period (0 inside it)."""
    chargeable_days = Decimal(days_elapsed - terms.grace_period_days)
    return max(ZERO, chargeable_days / Decimal(terms.days_per_year))


def calculate_interest_rate(days_elapsed: int, terms: LoanTerms = DEFAULT_LOAN_TERMS) -> Decimal:
    """
    Accrued interest as a fraction of principal.

    Continuous compounding after the grace period:
        exp(rate * years_elapsed) - 1

    Exactly 0 for days_elapsed <= grace period.
    """
    years = calculate_years_elapsed(days_elapsed, terms)
    if years == ZERO:
        return ZERO
    return (terms.interest_rate * years).exp() - 1


def calculate_loan_fees(
    loan_amount,
    is_repayment: bool = False,
    loan_age: int = 0,
    terms: LoanTerms = DEFAULT_LOAN_TERMS,
) -> FeeBreakdown:
    """
    Fees for a loan origination or repayment.

    Origination charges the internal and protocol fee rates on the loan value.
    Repayment charges only accrued interest on the returned amount, which is
    internal (it is minted back as tokens).

    Args:
        loan_amount: Loan value (origination) or principal returned (repayment)
        is_repayment: Whether this is a repayment
        loan_age: Days since origination (repayments only)
        terms: Fee and interest schedule
    """
    amount = abs(to_decimal(loan_amount))
    if is_repayment:
        return FeeBreakdown(
            internal=amount * calculate_interest_rate(loan_age, terms),
            protocol=ZERO,
        )
    return FeeBreakdown(
        internal=amount * terms.internal_fee_rate,
        protocol=amount * terms.protocol_fee_rate,
    )


def calculate_collateralized_tokens(loans: Iterable[LoanRecord]) -> Decimal:
    """Total collateral still locked across loan records."""
    return sum((loan.remaining_tokens for loan in loans), ZERO)


def calculate_outstanding_liability(
    loans: Iterable[LoanRecord],
    as_of_day: int,
    terms: LoanTerms = DEFAULT_LOAN_TERMS,
) -> LiabilityBreakdown:
    """
    Principal plus accrued interest over open loans, without repaying anything.

    Uses the same grace-period and continuous-compounding formula as
    repayment.
    """
    principal = ZERO
    interest = ZERO
    for loan in loans:
        if loan.remaining_tokens <= ZERO:
            continue
        rate = calculate_interest_rate(as_of_day - loan.day, terms)
        principal += loan.amount
        interest += loan.amount * rate
    return LiabilityBreakdown(principal=principal, interest=interest)


def find_oldest_outstanding(loans: Sequence[LoanRecord]) -> Optional[int]:
    """Index of the first loan that still has collateral locked, or None."""
    for i, loan in enumerate(loans):
        if loan.is_outstanding:
            return i
    return None


def replace_loan(
    loans: Tuple[LoanRecord, ...],
    index: int,
    record: LoanRecord,
) -> Tuple[LoanRecord, ...]:
    """Return a new loan tuple with the record at `index` swapped out."""
    return loans[:index] + (record,) + loans[index + 1:]
