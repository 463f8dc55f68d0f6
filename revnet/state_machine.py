"""
state_machine.py - Revnet Ledger State Machine

The state machine computes the Revnet's state as of any day by replaying the
event log from scratch: no ledger state is persisted between queries.

Key responsibilities:
    - fold_events(): pure reduction of day-ordered events into a LedgerState
    - RevnetStateMachine: binds an EventLog and StageTimeline, memoises the
      per-day results and answers the derived queries (available tokens,
      collateral, liabilities, loan potential, fees per day)

Event semantics (applied in day order, ties in entry order):
    Investment/Revenue  treasury += amount; mint amount / issuance_price tokens,
                        splits get round(minted * fraction), payer the rest
    Cashout             burn tokens for their bonding-curve value
    Loan                lock tokens (clamped to the holder's balance), pay out
                        their curve value less the internal fee
    Repay               release collateral from the oldest open loan, take
                        back principal plus interest, mint tokens from interest

The fold never raises on economically invalid events. Callers validate
before admitting events (see validation.py).
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .core import (
    ZERO,
    LoanTerms, DEFAULT_LOAN_TERMS,
    normalize_label, round_tokens,
)
from .bonding_curve import calculate_cash_out_value_for_event, cash_out_value_per_token
from .events import Event, EventLog, EventType
from .loans import (
    LoanRecord, FeeBreakdown, LiabilityBreakdown,
    calculate_loan_fees, calculate_interest_rate,
    calculate_collateralized_tokens, calculate_outstanding_liability,
    find_oldest_outstanding, replace_loan,
)
from .stages import StageConfig, StageDefinition, StageTimeline, issuance_price


# ============================================================================
# LEDGER STATE
# ============================================================================

@dataclass(frozen=True, slots=True)
class LedgerState:
    """
    Immutable snapshot of the Revnet as of a day.

    Attributes:
        day: Day the snapshot was computed for
        total_supply: Tokens in existence (locked collateral included)
        revnet_backing: Dollars held by the treasury
        tokens_by_label: Normalized label -> token balance (locked included)
        day_labeled_investor_loans: Normalized label -> outstanding loan dollars
        loan_history: Normalized label -> loan records, oldest first
    """
    day: int
    total_supply: Decimal
    revnet_backing: Decimal
    tokens_by_label: Mapping[str, Decimal]
    day_labeled_investor_loans: Mapping[str, Decimal]
    loan_history: Mapping[str, Tuple[LoanRecord, ...]]

    def tokens_for(self, label: str) -> Decimal:
        """Token balance of a label (display or normalized form)."""
        return self.tokens_by_label.get(normalize_label(label), ZERO)

    def loans_for(self, label: str) -> Tuple[LoanRecord, ...]:
        """Loan records of a label, oldest first."""
        return self.loan_history.get(normalize_label(label), ())

    def collateralized_for(self, label: str) -> Decimal:
        """Collateral still locked by a label."""
        return calculate_collateralized_tokens(self.loans_for(label))

    @property
    def total_locked_tokens(self) -> Decimal:
        """Collateral locked across all labels."""
        return sum(
            (calculate_collateralized_tokens(loans) for loans in self.loan_history.values()),
            ZERO,
        )

    @property
    def total_outstanding_loans(self) -> Decimal:
        """Outstanding loan dollars across all labels."""
        return sum(self.day_labeled_investor_loans.values(), ZERO)

    @property
    def labels(self) -> List[str]:
        """Every label known to the state, sorted."""
        return sorted(set(self.tokens_by_label) | set(self.loan_history))

    def __repr__(self) -> str:
        return (
            f"LedgerState(day={self.day}, supply={self.total_supply}, "
            f"backing={self.revnet_backing}, holders={len(self.tokens_by_label)}, "
            f"borrowers={len(self.loan_history)})"
        )


@dataclass(frozen=True, slots=True)
class DayFees:
    """Fees re-derived for the events of one day."""
    internal: Decimal
    external: Decimal

    @property
    def total(self) -> Decimal:
        return self.internal + self.external


# ============================================================================
# FOLD
# ============================================================================

class _Accumulator:
    """Mutable working state for one replay. Never escapes the fold."""

    __slots__ = ('total_supply', 'revnet_backing', 'tokens_by_label',
                 'day_labeled_investor_loans', 'loan_history')

    def __init__(self):
        self.total_supply = ZERO
        self.revnet_backing = ZERO
        self.tokens_by_label: Dict[str, Decimal] = {}
        self.day_labeled_investor_loans: Dict[str, Decimal] = {}
        self.loan_history: Dict[str, Tuple[LoanRecord, ...]] = {}

    def credit(self, label: str, tokens: Decimal) -> None:
        self.tokens_by_label[label] = self.tokens_by_label.get(label, ZERO) + tokens

    def snapshot(self, day: int) -> LedgerState:
        return LedgerState(
            day=day,
            total_supply=self.total_supply,
            revnet_backing=self.revnet_backing,
            tokens_by_label=MappingProxyType(dict(self.tokens_by_label)),
            day_labeled_investor_loans=MappingProxyType(dict(self.day_labeled_investor_loans)),
            loan_history=MappingProxyType(dict(self.loan_history)),
        )


def _mint(acc: _Accumulator, dollars: Decimal, stage: StageConfig, day: int, payer: str) -> Decimal:
    """
    Mint tokens for `dollars` at the stage's issuance price and distribute them.

    Each split recipient is credited its rounded share; the payer receives
    whatever is left, so no minted token goes unassigned.
    """
    minted = dollars / issuance_price(stage, day)
    acc.total_supply += minted

    distributed = ZERO
    for split_label, fraction in stage.splits.items():
        share = round_tokens(minted * fraction)
        acc.credit(normalize_label(split_label), share)
        distributed += share
    acc.credit(payer, minted - distributed)
    return minted


def _apply_issuance(acc: _Accumulator, event: Event, stage: StageConfig) -> None:
    acc.revnet_backing += event.amount
    _mint(acc, event.amount, stage, event.day, event.entity)


def _apply_cashout(acc: _Accumulator, event: Event, stage: StageConfig) -> None:
    value = calculate_cash_out_value_for_event(
        event.amount, acc.total_supply, acc.revnet_backing, stage.cash_out_tax
    )
    acc.revnet_backing -= value
    acc.total_supply -= event.amount
    acc.credit(event.entity, -event.amount)


def _apply_loan(
    acc: _Accumulator,
    event: Event,
    stage: StageConfig,
    terms: LoanTerms,
    verbose: bool,
) -> None:
    label = event.entity
    held = acc.tokens_by_label.get(label, ZERO)
    tokens_locked = event.amount
    if tokens_locked > held:
        tokens_locked = max(ZERO, held)
        if verbose:
            print(f"⚠️  CLAMPED: {event.label} tried to lock {event.amount} tokens "
                  f"on day {event.day} but holds {held}; locking {tokens_locked}")

    loan_amount = calculate_cash_out_value_for_event(
        tokens_locked, acc.total_supply, acc.revnet_backing, stage.cash_out_tax
    )
    fees = calculate_loan_fees(loan_amount, terms=terms)

    # Protocol fee leaves the system; only the internal fee flows back
    acc.revnet_backing += fees.internal - loan_amount

    record = LoanRecord(
        day=event.day,
        amount=loan_amount,
        tokens_locked=tokens_locked,
        remaining_tokens=tokens_locked,
    )
    acc.loan_history[label] = acc.loan_history.get(label, ()) + (record,)
    acc.day_labeled_investor_loans[label] = (
        acc.day_labeled_investor_loans.get(label, ZERO) + loan_amount
    )


def _apply_repay(
    acc: _Accumulator,
    event: Event,
    stage: StageConfig,
    terms: LoanTerms,
    verbose: bool,
) -> None:
    label = event.entity
    loans = acc.loan_history.get(label, ())
    index = find_oldest_outstanding(loans)
    if index is None:
        if verbose:
            print(f"⚠️  IGNORED: {event.label} has no outstanding loan to repay on day {event.day}")
        return

    oldest = loans[index]
    released = min(event.amount, oldest.remaining_tokens)
    remaining = oldest.remaining_tokens - released

    new_loan_amount = calculate_cash_out_value_for_event(
        remaining, acc.total_supply, acc.revnet_backing, stage.cash_out_tax
    )
    amount_returned = oldest.amount - new_loan_amount
    # Signed: a curve that moved against the borrower yields a negative return
    interest = amount_returned * calculate_interest_rate(event.day - oldest.day, terms)
    acc.revnet_backing += amount_returned + interest
    acc.loan_history[label] = replace_loan(
        loans, index, oldest.after_repayment(remaining, new_loan_amount)
    )
    acc.day_labeled_investor_loans[label] = new_loan_amount

    # Interest is minted like an issuance, but the dollars are already in backing
    if interest > ZERO:
        _mint(acc, interest, stage, event.day, label)


def apply_event(
    acc: _Accumulator,
    event: Event,
    timeline: StageTimeline,
    terms: LoanTerms = DEFAULT_LOAN_TERMS,
    verbose: bool = False,
) -> None:
    """Apply one event to the working state under the stage active on its day."""
    stage = timeline.get_stage_at_day(event.day)
    if event.type.is_issuance:
        _apply_issuance(acc, event, stage)
    elif event.type == EventType.CASHOUT:
        _apply_cashout(acc, event, stage)
    elif event.type == EventType.LOAN:
        _apply_loan(acc, event, stage, terms, verbose)
    elif event.type == EventType.REPAY:
        _apply_repay(acc, event, stage, terms, verbose)
    else:
        raise ValueError(f"Unhandled event type: {event.type}")


def fold_events(
    events: Iterable[Event],
    timeline: StageTimeline,
    target_day: int,
    terms: LoanTerms = DEFAULT_LOAN_TERMS,
    verbose: bool = False,
) -> LedgerState:
    """
    Replay events dated on or before `target_day` and return the resulting state.

    Events are stable-sorted by day first, so caller order only breaks ties.
    """
    acc = _Accumulator()
    for event in sorted((e for e in events if e.day <= target_day), key=lambda e: e.day):
        apply_event(acc, event, timeline, terms, verbose)
    return acc.snapshot(target_day)


# ============================================================================
# STATE MACHINE
# ============================================================================

class RevnetStateMachine:
    """
    Day-indexed view of a Revnet defined by an event log and a stage timeline.

    Every query is a pure function of (event log, timeline, day). Results of
    get_state_at_day() are memoised per day; the cache is dropped whenever the
    event log or the timeline reports a new version, so memoisation is never
    observable.

    Example:
        timeline = StageTimeline([StageDefinition(splits={"Team": 0.5}, cash_out_tax=0.1)])
        events = EventLog([investment_event(0, 10, "Angel investor")])
        machine = RevnetStateMachine(events, timeline, verbose=False)

        state = machine.get_state_at_day(0)
        state.total_supply                    # Decimal('10')
        machine.get_available_tokens("Angel investor", 0)   # Decimal('5')
    """

    def __init__(
        self,
        events: Union[EventLog, Iterable[Event]],
        timeline: Union[StageTimeline, Iterable[StageDefinition]],
        terms: LoanTerms = DEFAULT_LOAN_TERMS,
        verbose: bool = True,
    ):
        """
        Create a state machine.

        Args:
            events: EventLog (or iterable of events, wrapped in a new log)
            timeline: StageTimeline (or iterable of stage definitions)
            terms: Loan fee and interest schedule
            verbose: Print diagnostics such as clamped loans (default: True)
        """
        self.events = events if isinstance(events, EventLog) else EventLog(events)
        self.timeline = timeline if isinstance(timeline, StageTimeline) else StageTimeline(timeline)
        self.terms = terms
        self.verbose = verbose
        self._cache: Dict[int, LedgerState] = {}
        self._cache_key: Tuple[int, int] = self._current_key()

    # ========================================================================
    # REPLAY
    # ========================================================================

    def _current_key(self) -> Tuple[int, int]:
        return (self.events.version, self.timeline.version)

    def _check_cache(self) -> None:
        key = self._current_key()
        if key != self._cache_key:
            self._cache.clear()
            self._cache_key = key

    def invalidate(self) -> None:
        """Drop all memoised states."""
        self._cache.clear()

    def get_state_at_day(self, day: int) -> LedgerState:
        """
        Full replay of the event log up to and including `day`.

        Days before the first event (including negative days) yield the
        empty state.
        """
        self._check_cache()
        cached = self._cache.get(day)
        if cached is not None:
            return cached
        state = fold_events(
            self.events.ordered(), self.timeline, day, self.terms, self.verbose
        )
        self._cache[day] = state
        return state

    def iter_states(self, last_day: int, first_day: int = 0) -> Iterator[LedgerState]:
        """
        Yield the state of every day in [first_day, last_day] in one pass.

        Equivalent to calling get_state_at_day() for each day, but folds each
        event once. The walk replays the log and timeline as they were when it
        started; states are memoised only while neither has changed since.
        """
        self._check_cache()
        key = self._cache_key
        ordered = self.events.ordered()
        timeline = StageTimeline(self.timeline.stages)
        acc = _Accumulator()
        position = 0
        for day in range(first_day, last_day + 1):
            while position < len(ordered) and ordered[position].day <= day:
                apply_event(acc, ordered[position], timeline, self.terms, self.verbose)
                position += 1
            if self._current_key() != key:
                yield acc.snapshot(day)
                continue
            state = self._cache.get(day)
            if state is None:
                state = acc.snapshot(day)
                self._cache[day] = state
            yield state

    def get_stage_at_day(self, day: int) -> StageConfig:
        """Resolved stage configuration active on `day`."""
        return self.timeline.get_stage_at_day(day)

    # ========================================================================
    # DERIVED QUERIES
    # ========================================================================

    def get_collateralized_tokens(self, label: str, day: int) -> Decimal:
        """Collateral still locked by `label` as of `day`."""
        return self.get_state_at_day(day).collateralized_for(label)

    def get_available_tokens(self, label: str, day: int) -> Decimal:
        """Tokens `label` holds free of loans as of `day`, floored at 0."""
        state = self.get_state_at_day(day)
        available = state.tokens_for(label) - state.collateralized_for(label)
        return max(ZERO, available)

    def get_outstanding_liability(self, label: str, day: int) -> LiabilityBreakdown:
        """Principal and accrued interest on `label`'s open loans as of `day`."""
        state = self.get_state_at_day(day)
        return calculate_outstanding_liability(state.loans_for(label), day, self.terms)

    def get_loan_potential(self, label: str, day: int) -> Decimal:
        """
        What `label` could borrow against its free tokens as of `day`.

        Values the available tokens against a "full" treasury (backing plus
        all outstanding loans) and a "full" supply (supply plus all locked
        collateral), as if every open loan had been repaid.
        """
        state = self.get_state_at_day(day)
        available = self.get_available_tokens(label, day)
        if available <= ZERO or state.total_supply <= ZERO:
            return ZERO

        full_treasury = state.revnet_backing + state.total_outstanding_loans
        full_supply = state.total_supply + state.total_locked_tokens
        stage = self.get_stage_at_day(day)
        return calculate_cash_out_value_for_event(
            available, full_supply, full_treasury, stage.cash_out_tax
        )

    def calculate_loan_fees(self, loan_amount, is_repayment: bool = False, loan_age: int = 0) -> FeeBreakdown:
        """Fees for a loan or repayment under this machine's terms."""
        return calculate_loan_fees(loan_amount, is_repayment, loan_age, self.terms)

    def get_total_fees_for_day(self, day: int) -> DayFees:
        """
        Re-derive the fees charged by the events dated exactly `day`.

        Every event is priced against the state as of `day - 1`:
            loans       internal + protocol origination fees on the loan value
            repayments  interest accrued on the label's open loans
            cash-outs   external fee on the cash-out value
        """
        internal = ZERO
        external = ZERO
        day_events = self.events.on_day(day)
        if not day_events:
            return DayFees(internal=internal, external=external)

        before = self.get_state_at_day(day - 1)
        stage = self.get_stage_at_day(day)
        for event in day_events:
            if event.type == EventType.LOAN:
                loan_amount = calculate_cash_out_value_for_event(
                    event.amount, before.total_supply, before.revnet_backing, stage.cash_out_tax
                )
                fees = calculate_loan_fees(loan_amount, terms=self.terms)
                internal += fees.internal
                external += fees.protocol
            elif event.type == EventType.REPAY:
                liability = calculate_outstanding_liability(
                    before.loans_for(event.label), day, self.terms
                )
                internal += liability.interest
            elif event.type == EventType.CASHOUT:
                value = calculate_cash_out_value_for_event(
                    event.amount, before.total_supply, before.revnet_backing, stage.cash_out_tax
                )
                external += value * self.terms.cashout_fee_rate
        return DayFees(internal=internal, external=external)

    def get_total_invested(self, label: str, day: int) -> Decimal:
        """Dollars paid in by `label` through investments and revenue up to `day`."""
        key = normalize_label(label)
        return sum(
            (e.amount for e in self.events.up_to(day) if e.type.is_issuance and e.entity == key),
            ZERO,
        )

    def get_issuance_price(self, day: int) -> Decimal:
        """Dollars per newly minted token on `day`."""
        return issuance_price(self.get_stage_at_day(day), day)

    def get_cash_out_value_per_token(self, day: int) -> Decimal:
        """Bonding-curve value of one token as of `day`."""
        state = self.get_state_at_day(day)
        stage = self.get_stage_at_day(day)
        return cash_out_value_per_token(state.total_supply, state.revnet_backing, stage.cash_out_tax)

    def get_token_holders(self, day: int) -> List[str]:
        """Labels holding a positive token balance as of `day`, sorted."""
        state = self.get_state_at_day(day)
        return sorted(label for label, tokens in state.tokens_by_label.items() if tokens > ZERO)

    def get_labels_with_outstanding_loans(self, day: int) -> List[str]:
        """Labels with collateral still locked as of `day`, sorted."""
        state = self.get_state_at_day(day)
        return sorted(
            label for label, loans in state.loan_history.items()
            if calculate_collateralized_tokens(loans) > ZERO
        )

    def __repr__(self) -> str:
        return (
            f"RevnetStateMachine({len(self.events)} events, "
            f"{len(self.timeline)} stages, cached_days={len(self._cache)})"
        )
