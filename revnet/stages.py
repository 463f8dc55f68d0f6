"""
stages.py - Piecewise stage timeline

A Revnet's lifetime is split into consecutive stages. Each stage fixes the
token splits, the issuance-cut schedule and the cash-out tax for its span.

Classes:
- StageDefinition: the configured (source) stage, as entered
- StageConfig: the resolved snapshot for a given day
- StageTimeline: ordered stages with O(log n) day lookup

The last stage is always open-ended, whatever duration it was given.
"""

from __future__ import annotations
from bisect import bisect_right
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .core import (
    ZERO, ONE, INFINITY,
    NoStageConfigured,
    to_decimal,
)


def _whole_days(value) -> int:
    if isinstance(value, bool):
        raise ValueError(f"cut_period must be a whole number of days, got {value!r}")
    try:
        days = to_decimal(value)
    except InvalidOperation:
        raise ValueError(f"cut_period must be a whole number of days, got {value!r}") from None
    if not days.is_finite() or days != days.to_integral_value():
        raise ValueError(f"cut_period must be a whole number of days, got {value!r}")
    return int(days)


@dataclass(frozen=True, slots=True)
class StageDefinition:
    """
    One configured stage, as entered by the user.

    Attributes:
        duration_days: Length of the stage; None or 0 means zero days, except
                       on the last stage which never ends
        splits: Display label -> fraction of newly minted tokens (0-1)
        has_cuts: Whether the issuance price steps up on a schedule
        issuance_cut: Price increase per cut as a fraction (0.5 = +50%)
        cut_period: Days between cuts
        cash_out_tax: Bonding curve tax rate (0-1)
    """
    duration_days: Optional[Decimal] = None
    splits: Mapping[str, Decimal] = field(default_factory=dict)
    has_cuts: bool = False
    issuance_cut: Decimal = ZERO
    cut_period: Optional[int] = None
    cash_out_tax: Decimal = ZERO

    def __post_init__(self):
        if self.duration_days is not None and not isinstance(self.duration_days, Decimal):
            object.__setattr__(self, 'duration_days', to_decimal(self.duration_days))
        if not isinstance(self.issuance_cut, Decimal):
            object.__setattr__(self, 'issuance_cut', to_decimal(self.issuance_cut))
        if not isinstance(self.cash_out_tax, Decimal):
            object.__setattr__(self, 'cash_out_tax', to_decimal(self.cash_out_tax))

        # Read-only copy: later edits to the caller's dict must not reach the stage
        object.__setattr__(
            self, 'splits', MappingProxyType({k: to_decimal(v) for k, v in self.splits.items()})
        )
        if self.cut_period is not None:
            object.__setattr__(self, 'cut_period', _whole_days(self.cut_period))

        if self.duration_days is not None and self.duration_days < ZERO:
            raise ValueError(f"Stage duration must be non-negative, got {self.duration_days}")
        if not ZERO <= self.cash_out_tax <= ONE:
            raise ValueError(f"Cash out tax must be within [0, 1], got {self.cash_out_tax}")
        if self.issuance_cut < ZERO:
            raise ValueError(f"Issuance cut must be non-negative, got {self.issuance_cut}")
        if self.has_cuts and (self.cut_period is None or self.cut_period <= 0):
            raise ValueError(f"Stages with cuts need a positive cut_period, got {self.cut_period}")
        for label, fraction in self.splits.items():
            if fraction < ZERO:
                raise ValueError(f"Split for {label!r} must be non-negative, got {fraction}")

    @property
    def effective_splits(self) -> Dict[str, Decimal]:
        """Splits that take part in issuance: non-blank labels with a positive share."""
        return {
            label.strip(): fraction
            for label, fraction in self.splits.items()
            if label.strip() and fraction > ZERO
        }

    @property
    def total_split(self) -> Decimal:
        """Sum of all configured split fractions."""
        return sum(self.splits.values(), ZERO)


def default_stage(duration_days=None) -> StageDefinition:
    """The planner's initial stage: Team 50%, 50% cuts every 90 days, 0.1 tax."""
    return StageDefinition(
        duration_days=duration_days,
        splits={"Team": Decimal("0.5")},
        has_cuts=True,
        issuance_cut=Decimal("0.5"),
        cut_period=90,
        cash_out_tax=Decimal("0.1"),
    )


@dataclass(frozen=True, slots=True)
class StageConfig:
    """
    Resolved stage snapshot for a specific day.

    Attributes:
        splits: Display label -> fraction (only positive, non-blank splits)
        investor_split: Payer's remainder, 1 - sum(splits), floored at 0
        has_cuts: Whether issuance cuts apply
        issuance_cut: Price step per cut (0 without cuts)
        cut_period: Days between cuts (None without cuts)
        cash_out_tax: Bonding curve tax rate
        stage_index: Position of the stage in the timeline
        stage_start_day: First day of the stage
        duration_days: Effective span (Infinity for the last stage)
    """
    splits: Mapping[str, Decimal]
    investor_split: Decimal
    has_cuts: bool
    issuance_cut: Decimal
    cut_period: Optional[int]
    cash_out_tax: Decimal
    stage_index: int
    stage_start_day: Decimal
    duration_days: Decimal

    @property
    def stage_end_day(self) -> Decimal:
        """First day after the stage (Infinity for the last stage)."""
        return self.stage_start_day + self.duration_days

    def issuance_price(self, day: int) -> Decimal:
        """Dollars per token on `day` under this stage's cut schedule."""
        return issuance_price(self, day)


def issuance_price(stage: StageConfig, day: int) -> Decimal:
    """
    Step-function issuance price.

        price = (1 + issuance_cut) ^ floor(day / cut_period)

    The number of elapsed cuts is counted from day 0, not from the stage
    start, and is recomputed fresh for every day. Without cuts the price is 1.
    """
    if not stage.has_cuts or not stage.cut_period:
        return ONE
    num_cuts = day // stage.cut_period
    if num_cuts <= 0:
        return ONE
    return (ONE + stage.issuance_cut) ** num_cuts


class StageTimeline:
    """
    Ordered stages with day lookup.

    Stage i covers [start_i, start_i + duration_i). A stage with zero
    duration covers no days. The last stage covers everything after the
    previous stages, regardless of its configured duration.

    Lookup uses binary search over the cumulative stage ends. Every edit
    bumps `version`, which state machines use to invalidate memoised results.
    """

    def __init__(self, stages: Optional[Iterable[StageDefinition]] = None):
        self._stages: List[StageDefinition] = list(stages or ())
        self.version = 0
        self._rebuild()

    def _rebuild(self) -> None:
        self.version += 1
        starts: List[Decimal] = []
        ends: List[Decimal] = []
        cumulative = ZERO
        for i, stage in enumerate(self._stages):
            starts.append(cumulative)
            if i == len(self._stages) - 1:
                ends.append(INFINITY)
            else:
                duration = stage.duration_days or ZERO
                cumulative += duration
                ends.append(cumulative)
        self._starts = starts
        # Ends of every stage but the last; the last catches all remaining days
        self._bounded_ends = ends[:-1]

    def add(self, stage: StageDefinition) -> None:
        """Append a stage to the end of the timeline."""
        self._stages.append(stage)
        self._rebuild()

    def remove(self, index: int) -> StageDefinition:
        """Remove and return the stage at `index`."""
        stage = self._stages.pop(index)
        self._rebuild()
        return stage

    def replace(self, index: int, stage: StageDefinition) -> StageDefinition:
        """Swap the stage at `index`, returning the old one."""
        old = self._stages[index]
        self._stages[index] = stage
        self._rebuild()
        return old

    @property
    def stages(self) -> Tuple[StageDefinition, ...]:
        return tuple(self._stages)

    def stage_index_at_day(self, day) -> int:
        """Index of the stage active on `day`."""
        if not self._stages:
            raise NoStageConfigured("No stage configured: add at least one stage")
        idx = bisect_right(self._bounded_ends, to_decimal(day))
        return min(idx, len(self._stages) - 1)

    def get_stage_at_day(self, day) -> StageConfig:
        """
        Resolve the stage active on `day`.

        Raises:
            NoStageConfigured: If the timeline is empty.
        """
        i = self.stage_index_at_day(day)
        stage = self._stages[i]
        is_last = i == len(self._stages) - 1
        duration = INFINITY if is_last else (stage.duration_days or ZERO)
        splits = stage.effective_splits
        investor_split = max(ZERO, ONE - sum(splits.values(), ZERO))
        return StageConfig(
            splits=splits,
            investor_split=investor_split,
            has_cuts=stage.has_cuts,
            issuance_cut=stage.issuance_cut if stage.has_cuts else ZERO,
            cut_period=stage.cut_period if stage.has_cuts else None,
            cash_out_tax=stage.cash_out_tax,
            stage_index=i,
            stage_start_day=self._starts[i],
            duration_days=duration,
        )

    def issuance_price_at_day(self, day: int) -> Decimal:
        """Issuance price under the stage active on `day`."""
        return issuance_price(self.get_stage_at_day(day), day)

    def split_labels(self) -> List[str]:
        """Distinct split labels across all stages, in first-seen order."""
        seen: Dict[str, None] = {}
        for stage in self._stages:
            for label in stage.effective_splits:
                seen.setdefault(label, None)
        return list(seen)

    def __iter__(self) -> Iterator[StageDefinition]:
        return iter(self._stages)

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        return f"StageTimeline({len(self._stages)} stages)"
