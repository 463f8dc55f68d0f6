"""
scenarios.py - Planner records and preset scenarios

The planner enters events as loose records in "millions":

    {"day": 0, "type": "investment", "amount": 10, "label": "Angel investor"}
    {"day": 1, "type": "loan", "amount": "1", "label": "Angel investor"}

events_from_records() turns them into Event values:
- amounts are scaled by TOKEN_SCALE ($M -> dollars, M tokens -> tokens)
- non-numeric, zero and negative amounts are skipped silently
- "payback-loan" and "repay" both mean a repayment
- "<label>-loan" / "<label>-repay" / "<label>-cashout" carry their own label
- unlabeled investments and revenue get a generic payer label
- records with "visible": False are left out of the calculation

Presets come in two kinds. Growth scenarios describe how money comes in;
operations scenarios add loans, repayments and exits to one of them.
Scenario.with_operations() layers any number of operations presets over a
growth preset.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .core import ZERO, TOKEN_SCALE, to_decimal
from .events import Event, EventLog, EventType, parse_event_type
from .stages import StageDefinition, StageTimeline, default_stage
from .state_machine import RevnetStateMachine


GENERIC_INVESTOR_LABEL = "Generic investor"
GENERIC_REVENUE_LABEL = "Generic Revenue"

# Planner type names for entity actions, before a token holder is attached.
_ACTION_TYPES = {
    "loan": EventType.LOAN,
    "payback-loan": EventType.REPAY,
    "repay": EventType.REPAY,
    "cashout": EventType.CASHOUT,
}


def _parse_amount(raw: Any) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.replace(",", "").strip()
        if not raw:
            return None
    try:
        amount = to_decimal(raw)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def _parse_day(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    try:
        day = int(raw)
    except (TypeError, ValueError):
        return None
    return day if day >= 0 else None


def _resolve_type(type_string: str, label: str) -> Tuple[Optional[EventType], str]:
    if type_string in _ACTION_TYPES:
        return _ACTION_TYPES[type_string], label
    try:
        kind, entity = parse_event_type(type_string)
    except ValueError:
        return None, label
    if entity is not None and not label:
        label = entity
    return kind, label


def event_from_record(record: Mapping[str, Any], scale: Decimal = TOKEN_SCALE) -> Optional[Event]:
    """
    Convert one planner record to an Event.

    Returns:
        The event, or None when the record is hidden, incomplete or has a
        non-positive or non-numeric amount.
    """
    if not record.get("visible", True):
        return None

    day = _parse_day(record.get("day"))
    amount = _parse_amount(record.get("amount"))
    if day is None or amount is None:
        return None

    label = str(record.get("label") or "").strip()
    kind, label = _resolve_type(str(record.get("type") or ""), label)
    if kind is None:
        return None

    amount = amount * scale
    if amount <= ZERO:
        return None

    if not label:
        if kind == EventType.INVESTMENT:
            label = GENERIC_INVESTOR_LABEL
        elif kind == EventType.REVENUE:
            label = GENERIC_REVENUE_LABEL
        else:
            # Entity actions need a token holder
            return None

    return Event(day=day, type=kind, amount=amount, label=label)


def events_from_records(
    records: Iterable[Mapping[str, Any]],
    scale: Decimal = TOKEN_SCALE,
) -> List[Event]:
    """Convert planner records to events, keeping entry order and dropping unusable ones."""
    events = []
    for record in records:
        event = event_from_record(record, scale)
        if event is not None:
            events.append(event)
    return events


def _is_action_record(record: Mapping[str, Any]) -> bool:
    kind, _ = _resolve_type(str(record.get("type") or ""), "")
    return kind is not None and kind.is_entity_action


def _record_day(record: Mapping[str, Any]) -> int:
    day = _parse_day(record.get("day"))
    return day if day is not None else 0


# ============================================================================
# SCENARIOS
# ============================================================================

@dataclass(frozen=True)
class Scenario:
    """
    Named set of planner records with the stages they run under.

    Growth scenarios describe how money comes in. Operations scenarios
    replay a growth scenario with loans, repayments and cash-outs on top;
    `base` names the growth scenario they extend.

    Attributes:
        key: Identifier used to look the scenario up
        name: Display name
        description: One-line summary
        records: Planner records (amounts in millions)
        stages: Stage definitions, in order
        narrative: Longer story shown with the scenario
        base: Key of the growth scenario an operations scenario builds on
    """
    key: str
    name: str
    description: str
    records: Tuple[Mapping[str, Any], ...]
    stages: Tuple[StageDefinition, ...] = field(default_factory=lambda: (default_stage(),))
    narrative: str = ""
    base: Optional[str] = None

    @property
    def is_operations(self) -> bool:
        return self.base is not None

    def events(self) -> List[Event]:
        return events_from_records(self.records)

    def operations(self) -> Tuple[Mapping[str, Any], ...]:
        """The loan, repayment and cash-out records; growth records are left out."""
        return tuple(r for r in self.records if _is_action_record(r))

    def with_operations(self, *others: Union["Scenario", str]) -> "Scenario":
        """
        Layer the entity actions of `others` over this scenario.

        Only the loan, repayment and cash-out records of each overlay are
        added, so growth events an operations preset repeats are not counted
        twice. Records are ordered by day, keeping entry order within a day.
        Stages come from this scenario.

        Args:
            others: Scenarios or scenario keys to layer on, in order

        Raises:
            KeyError: If a key names no scenario.

        Example:
            >>> combined = get_scenario("hypergrowth").with_operations(
            ...     "hypergrowth-with-loans", "hypergrowth-with-exits")
            >>> combined.key
            'hypergrowth+hypergrowth-with-loans+hypergrowth-with-exits'
        """
        overlays = [get_scenario(o) if isinstance(o, str) else o for o in others]
        if not overlays:
            return self
        records = list(self.records)
        for overlay in overlays:
            records.extend(overlay.operations())
        records.sort(key=_record_day)
        return Scenario(
            key="+".join([self.key] + [o.key for o in overlays]),
            name=" + ".join([self.name] + [o.name for o in overlays]),
            description=self.description,
            records=tuple(records),
            stages=self.stages,
            narrative=" ".join(s.narrative for s in [self] + overlays if s.narrative),
            base=self.base or self.key,
        )

    def build(self, verbose: bool = False) -> RevnetStateMachine:
        """Fresh state machine over this scenario's events and stages."""
        return RevnetStateMachine(
            EventLog(self.events()),
            StageTimeline(self.stages),
            verbose=verbose,
        )


DEFAULT_SCENARIO = Scenario(
    key="default",
    name="Sample Revnet",
    description="Angel investment, a loan against it, a partial repayment and a cash-out.",
    records=(
        {"day": 0, "type": "investment", "amount": 10, "label": "Angel investor"},
        {"day": 1, "type": "loan", "amount": 1, "label": "Angel investor"},
        {"day": 280, "type": "payback-loan", "amount": 0.5, "label": "Angel investor"},
        {"day": 281, "type": "cashout", "amount": 0.5, "label": "Angel investor"},
    ),
    stages=(
        StageDefinition(
            splits={"Team": Decimal("0.5")},
            has_cuts=False,
            cash_out_tax=Decimal("0.1"),
        ),
    ),
)


# ----------------------------------------------------------------------------
# Growth scenarios
# ----------------------------------------------------------------------------

CONSERVATIVE_GROWTH = Scenario(
    key="conservative-growth",
    name="Conservative Growth",
    description="A steady Revnet with 10% revenue growth per period.",
    narrative=(
        "Starting with a $10M investment, revenue grows by 10% each period, "
        "showing how organic growth creates value for all participants."
    ),
    records=(
        {"day": 0, "type": "investment", "amount": 10, "label": "Angel Investor"},
        {"day": 90, "type": "revenue", "amount": 2, "label": "Q1 Revenue"},
        {"day": 180, "type": "revenue", "amount": 2.2, "label": "Q2 Revenue"},
        {"day": 270, "type": "revenue", "amount": 2.42, "label": "Q3 Revenue"},
        {"day": 360, "type": "revenue", "amount": 2.66, "label": "Q4 Revenue"},
        {"day": 450, "type": "revenue", "amount": 2.93, "label": "Q1 Revenue"},
        {"day": 540, "type": "revenue", "amount": 3.22, "label": "Q2 Revenue"},
    ),
)


HYPERGROWTH = Scenario(
    key="hypergrowth",
    name="Hypergrowth",
    description="High risk and high reward: revenue doubles every quarter.",
    narrative=(
        "Revenue doubles every period, from $1M to $32M, "
        "demonstrating exponential scaling."
    ),
    records=(
        {"day": 0, "type": "investment", "amount": 5, "label": "Seed Investor"},
        {"day": 90, "type": "revenue", "amount": 1, "label": "Q1 Revenue"},
        {"day": 180, "type": "revenue", "amount": 2, "label": "Q2 Revenue"},
        {"day": 270, "type": "revenue", "amount": 4, "label": "Q3 Revenue"},
        {"day": 360, "type": "revenue", "amount": 8, "label": "Q4 Revenue"},
        {"day": 450, "type": "revenue", "amount": 16, "label": "Q5 Revenue"},
        {"day": 540, "type": "revenue", "amount": 32, "label": "Q6 Revenue"},
    ),
)


BOOTSTRAP_SCALE = Scenario(
    key="bootstrap-scale",
    name="Bootstrap to Scale",
    description="Starts small and grows organically through revenue.",
    narrative=(
        "Minimal founder capital, then revenue that doubles as the business "
        "finds its market, without outside funding."
    ),
    records=(
        {"day": 0, "type": "investment", "amount": 1, "label": "Founder Investment"},
        {"day": 60, "type": "revenue", "amount": 0.5, "label": "First Revenue"},
        {"day": 180, "type": "revenue", "amount": 1, "label": "Growing Revenue"},
        {"day": 300, "type": "revenue", "amount": 2, "label": "Scaling Revenue"},
        {"day": 420, "type": "revenue", "amount": 4, "label": "Expanding Revenue"},
        {"day": 540, "type": "revenue", "amount": 8, "label": "Mature Revenue"},
    ),
)


VC_FUELED = Scenario(
    key="vc-fueled",
    name="VC-Fueled Growth",
    description="A startup trajectory with Series A, B and C rounds between revenue.",
    narrative=(
        "A traditional growth pattern with several funding rounds, showing how "
        "institutional backing can accelerate growth."
    ),
    records=(
        {"day": 0, "type": "investment", "amount": 2, "label": "Angel Investor"},
        {"day": 90, "type": "investment", "amount": 10, "label": "Series A"},
        {"day": 180, "type": "revenue", "amount": 3, "label": "Product Revenue"},
        {"day": 270, "type": "investment", "amount": 25, "label": "Series B"},
        {"day": 360, "type": "revenue", "amount": 8, "label": "Scaling Revenue"},
        {"day": 450, "type": "revenue", "amount": 15, "label": "Mature Revenue"},
        {"day": 540, "type": "investment", "amount": 50, "label": "Series C"},
    ),
)


COMMUNITY_DRIVEN = Scenario(
    key="community-driven",
    name="Community-Driven",
    description="Community building first, with revenue flowing back to participants.",
    narrative=(
        "A community fund seeds the Revnet and community activity drives "
        "revenue, creating value for members rather than maximising investor returns."
    ),
    records=(
        {"day": 0, "type": "investment", "amount": 5, "label": "Community Fund"},
        {"day": 30, "type": "revenue", "amount": 1, "label": "Community Revenue"},
        {"day": 90, "type": "revenue", "amount": 2, "label": "Growing Community"},
        {"day": 180, "type": "revenue", "amount": 4, "label": "Active Community"},
        {"day": 270, "type": "revenue", "amount": 6, "label": "Thriving Community"},
        {"day": 360, "type": "revenue", "amount": 8, "label": "Community Success"},
    ),
)


BOOM_BUST = Scenario(
    key="boom-bust",
    name="Boom-Bust Cycle",
    description="Rapid growth followed by a market correction.",
    narrative=(
        "Revenue climbs to a peak and then falls back, demonstrating why "
        "timing matters in a Revnet."
    ),
    records=(
        {"day": 0, "type": "investment", "amount": 10, "label": "Early Investor"},
        {"day": 60, "type": "revenue", "amount": 5, "label": "Initial Growth"},
        {"day": 120, "type": "revenue", "amount": 20, "label": "Boom Phase"},
        {"day": 180, "type": "revenue", "amount": 50, "label": "Peak Growth"},
        {"day": 240, "type": "revenue", "amount": 30, "label": "Market Correction"},
        {"day": 300, "type": "revenue", "amount": 25, "label": "Stabilization"},
        {"day": 360, "type": "revenue", "amount": 15, "label": "Recovery"},
    ),
)


# ----------------------------------------------------------------------------
# Operations scenarios: a growth story with loans, repayments and exits
# ----------------------------------------------------------------------------

CONSERVATIVE_GROWTH_WITH_LOANS = Scenario(
    key="conservative-growth-with-loans",
    name="Conservative Growth + Team Loans",
    description="Conservative growth with the team borrowing against its tokens for operating capital.",
    narrative="The team borrows against its tokens to fund operations and expansion.",
    base="conservative-growth",
    records=(
        {"day": 0, "type": "investment", "amount": 10, "label": "Angel Investor"},
        {"day": 30, "type": "loan", "amount": 0.8, "label": "Team"},
        {"day": 90, "type": "revenue", "amount": 2, "label": "Q1 Revenue"},
        {"day": 120, "type": "loan", "amount": 1.2, "label": "Team"},
        {"day": 180, "type": "revenue", "amount": 2.2, "label": "Q2 Revenue"},
        {"day": 210, "type": "loan", "amount": 1.5, "label": "Team"},
        {"day": 270, "type": "revenue", "amount": 2.42, "label": "Q3 Revenue"},
        {"day": 300, "type": "loan", "amount": 1.8, "label": "Team"},
        {"day": 365, "type": "revenue", "amount": 2.66, "label": "Q4 Revenue"},
        {"day": 395, "type": "loan", "amount": 2.0, "label": "Team"},
        {"day": 455, "type": "revenue", "amount": 2.93, "label": "Q1 Revenue"},
        {"day": 485, "type": "loan", "amount": 2.2, "label": "Team"},
        {"day": 545, "type": "revenue", "amount": 3.22, "label": "Q2 Revenue"},
        {"day": 575, "type": "payback-loan", "amount": 1.0, "label": "Team"},
    ),
)


CONSERVATIVE_GROWTH_WITH_EXITS = Scenario(
    key="conservative-growth-with-exits",
    name="Conservative Growth + Investor Exits",
    description="Conservative growth with investors taking partial exits.",
    narrative="Investors take partial exits as the Revnet shows steady appreciation.",
    base="conservative-growth",
    records=(
        {"day": 0, "type": "investment", "amount": 10, "label": "Angel Investor"},
        {"day": 90, "type": "revenue", "amount": 2, "label": "Q1 Revenue"},
        {"day": 180, "type": "revenue", "amount": 2.2, "label": "Q2 Revenue"},
        {"day": 270, "type": "revenue", "amount": 2.42, "label": "Q3 Revenue"},
        {"day": 360, "type": "cashout", "amount": 0.2, "label": "Angel Investor"},
        {"day": 450, "type": "revenue", "amount": 2.93, "label": "Q4 Revenue"},
        {"day": 540, "type": "cashout", "amount": 0.15, "label": "Angel Investor"},
    ),
)


HYPERGROWTH_WITH_EXITS = Scenario(
    key="hypergrowth-with-exits",
    name="Hypergrowth + Investor Exits",
    description="Hypergrowth with the seed investor cashing out portions as value multiplies.",
    narrative="Early investors cash out part of their holdings as the value multiplies.",
    base="hypergrowth",
    records=(
        {"day": 0, "type": "investment", "amount": 5, "label": "Seed Investor"},
        {"day": 90, "type": "revenue", "amount": 1, "label": "Q1 Revenue"},
        {"day": 180, "type": "revenue", "amount": 2, "label": "Q2 Revenue"},
        {"day": 270, "type": "revenue", "amount": 4, "label": "Q3 Revenue"},
        {"day": 360, "type": "cashout", "amount": 0.2, "label": "Seed Investor"},
        {"day": 450, "type": "revenue", "amount": 8, "label": "Q5 Revenue"},
        {"day": 540, "type": "cashout", "amount": 0.3, "label": "Seed Investor"},
    ),
)


HYPERGROWTH_WITH_LOANS = Scenario(
    key="hypergrowth-with-loans",
    name="Hypergrowth + Growth Financing",
    description="Hypergrowth with the team borrowing monthly to fuel expansion.",
    narrative="The team borrows against its tokens to capitalise on rapid growth.",
    base="hypergrowth",
    records=(
        {"day": 0, "type": "investment", "amount": 5, "label": "Seed Investor"},
        {"day": 30, "type": "loan", "amount": 0.3, "label": "Team"},
        {"day": 60, "type": "loan", "amount": 0.4, "label": "Team"},
        {"day": 90, "type": "revenue", "amount": 1, "label": "Q1 Revenue"},
        {"day": 120, "type": "loan", "amount": 0.5, "label": "Team"},
        {"day": 150, "type": "loan", "amount": 0.6, "label": "Team"},
        {"day": 180, "type": "revenue", "amount": 2, "label": "Q2 Revenue"},
        {"day": 210, "type": "loan", "amount": 0.7, "label": "Team"},
        {"day": 240, "type": "loan", "amount": 0.8, "label": "Team"},
        {"day": 270, "type": "revenue", "amount": 4, "label": "Q3 Revenue"},
        {"day": 300, "type": "loan", "amount": 0.9, "label": "Team"},
        {"day": 330, "type": "loan", "amount": 1.0, "label": "Team"},
        {"day": 360, "type": "revenue", "amount": 8, "label": "Q4 Revenue"},
        {"day": 390, "type": "loan", "amount": 1.1, "label": "Team"},
        {"day": 420, "type": "loan", "amount": 1.2, "label": "Team"},
        {"day": 450, "type": "revenue", "amount": 16, "label": "Q5 Revenue"},
        {"day": 480, "type": "loan", "amount": 1.3, "label": "Team"},
        {"day": 510, "type": "loan", "amount": 1.4, "label": "Team"},
        {"day": 540, "type": "revenue", "amount": 32, "label": "Q6 Revenue"},
        {"day": 570, "type": "payback-loan", "amount": 0.8, "label": "Team"},
    ),
)


BOOTSTRAP_WITH_LIQUIDITY = Scenario(
    key="bootstrap-with-liquidity",
    name="Bootstrap + Strategic Liquidity",
    description="Bootstrap growth with the team using loans for expansion capital.",
    narrative="The team funds expansion with loans while growth stays organic.",
    base="bootstrap-scale",
    records=(
        {"day": 0, "type": "investment", "amount": 1, "label": "Founder Investment"},
        {"day": 20, "type": "loan", "amount": 0.3, "label": "Team"},
        {"day": 60, "type": "revenue", "amount": 0.5, "label": "First Revenue"},
        {"day": 90, "type": "loan", "amount": 0.5, "label": "Team"},
        {"day": 180, "type": "revenue", "amount": 1, "label": "Growing Revenue"},
        {"day": 210, "type": "loan", "amount": 0.8, "label": "Team"},
        {"day": 240, "type": "loan", "amount": 1.2, "label": "Team"},
        {"day": 300, "type": "revenue", "amount": 2, "label": "Scaling Revenue"},
        {"day": 330, "type": "loan", "amount": 1.0, "label": "Team"},
        {"day": 360, "type": "loan", "amount": 0.8, "label": "Team"},
        {"day": 420, "type": "revenue", "amount": 4, "label": "Expanding Revenue"},
        {"day": 450, "type": "loan", "amount": 1.5, "label": "Team"},
        {"day": 480, "type": "payback-loan", "amount": 1.0, "label": "Team"},
    ),
)


BOOTSTRAP_WITH_EXITS = Scenario(
    key="bootstrap-with-exits",
    name="Bootstrap + Founder Liquidity",
    description="Bootstrap growth with founders taking partial exits.",
    narrative="Founders take partial exits for personal liquidity while keeping control.",
    base="bootstrap-scale",
    records=(
        {"day": 0, "type": "investment", "amount": 1, "label": "Founder Investment"},
        {"day": 60, "type": "revenue", "amount": 0.5, "label": "First Revenue"},
        {"day": 180, "type": "revenue", "amount": 1, "label": "Growing Revenue"},
        {"day": 300, "type": "revenue", "amount": 2, "label": "Scaling Revenue"},
        {"day": 360, "type": "cashout", "amount": 0.2, "label": "Founder Investment"},
        {"day": 420, "type": "revenue", "amount": 4, "label": "Expanding Revenue"},
        {"day": 540, "type": "cashout", "amount": 0.15, "label": "Founder Investment"},
    ),
)


VC_FUELED_WITH_EXITS = Scenario(
    key="vc-fueled-with-exits",
    name="VC-Fueled + Strategic Exits",
    description="VC growth with the angel taking a partial exit between rounds.",
    narrative="Early investors take partial exits during funding rounds while the Revnet scales.",
    base="vc-fueled",
    records=(
        {"day": 0, "type": "investment", "amount": 2, "label": "Angel Investor"},
        {"day": 90, "type": "investment", "amount": 10, "label": "Series A"},
        {"day": 180, "type": "revenue", "amount": 3, "label": "Product Revenue"},
        {"day": 270, "type": "investment", "amount": 25, "label": "Series B"},
        {"day": 360, "type": "cashout", "amount": 0.2, "label": "Angel Investor"},
        {"day": 450, "type": "revenue", "amount": 15, "label": "Mature Revenue"},
        {"day": 540, "type": "investment", "amount": 50, "label": "Series C"},
    ),
)


VC_FUELED_WITH_LOANS = Scenario(
    key="vc-fueled-with-loans",
    name="VC-Fueled + Growth Bridge Loans",
    description="VC growth with the team bridging funding rounds with loans.",
    narrative="The team bridges the gaps between funding rounds with loans to keep momentum.",
    base="vc-fueled",
    records=(
        {"day": 0, "type": "investment", "amount": 2, "label": "Angel Investor"},
        {"day": 30, "type": "loan", "amount": 0.8, "label": "Team"},
        {"day": 90, "type": "investment", "amount": 10, "label": "Series A"},
        {"day": 120, "type": "loan", "amount": 1.5, "label": "Team"},
        {"day": 180, "type": "revenue", "amount": 3, "label": "Product Revenue"},
        {"day": 210, "type": "loan", "amount": 2.0, "label": "Team"},
        {"day": 270, "type": "investment", "amount": 25, "label": "Series B"},
        {"day": 300, "type": "loan", "amount": 2.5, "label": "Team"},
        {"day": 330, "type": "loan", "amount": 2.2, "label": "Team"},
        {"day": 360, "type": "loan", "amount": 2.0, "label": "Team"},
        {"day": 450, "type": "revenue", "amount": 15, "label": "Mature Revenue"},
        {"day": 480, "type": "loan", "amount": 2.8, "label": "Team"},
        {"day": 540, "type": "investment", "amount": 50, "label": "Series C"},
        {"day": 570, "type": "loan", "amount": 3.0, "label": "Team"},
        {"day": 600, "type": "loan", "amount": 1.8, "label": "Team"},
        {"day": 630, "type": "loan", "amount": 1.5, "label": "Team"},
        {"day": 720, "type": "payback-loan", "amount": 2.0, "label": "Team"},
    ),
)


COMMUNITY_WITH_LIQUIDITY = Scenario(
    key="community-with-liquidity",
    name="Community + Liquidity Access",
    description="Community-driven growth with the fund borrowing against its tokens.",
    narrative="Community members reach liquidity through loans and keep building.",
    base="community-driven",
    records=(
        {"day": 0, "type": "investment", "amount": 5, "label": "Community Fund"},
        {"day": 30, "type": "revenue", "amount": 1, "label": "Community Revenue"},
        {"day": 90, "type": "revenue", "amount": 2, "label": "Growing Community"},
        {"day": 180, "type": "loan", "amount": 0.2, "label": "Community Fund"},
        {"day": 270, "type": "revenue", "amount": 4, "label": "Active Community"},
        {"day": 360, "type": "payback-loan", "amount": 0.1, "label": "Community Fund"},
        {"day": 450, "type": "revenue", "amount": 8, "label": "Community Success"},
    ),
)


COMMUNITY_WITH_EXITS = Scenario(
    key="community-with-exits",
    name="Community + Fund Exits",
    description="Community-driven growth with the community fund taking exits.",
    narrative="The community fund takes exits to return value to its members.",
    base="community-driven",
    records=(
        {"day": 0, "type": "investment", "amount": 5, "label": "Community Fund"},
        {"day": 30, "type": "revenue", "amount": 1, "label": "Community Revenue"},
        {"day": 90, "type": "revenue", "amount": 2, "label": "Growing Community"},
        {"day": 180, "type": "revenue", "amount": 4, "label": "Active Community"},
        {"day": 270, "type": "cashout", "amount": 0.3, "label": "Community Fund"},
        {"day": 360, "type": "revenue", "amount": 6, "label": "Thriving Community"},
        {"day": 450, "type": "cashout", "amount": 0.2, "label": "Community Fund"},
    ),
)


BOOM_BUST_WITH_TIMING = Scenario(
    key="boom-bust-with-timing",
    name="Boom-Bust + Strategic Timing",
    description="Boom-bust cycle with an exit at the peak and a loan in recovery.",
    narrative="Participants exit near the peak and borrow during the recovery.",
    base="boom-bust",
    records=(
        {"day": 0, "type": "investment", "amount": 10, "label": "Early Investor"},
        {"day": 60, "type": "revenue", "amount": 5, "label": "Initial Growth"},
        {"day": 120, "type": "revenue", "amount": 20, "label": "Boom Phase"},
        {"day": 180, "type": "revenue", "amount": 50, "label": "Peak Growth"},
        {"day": 240, "type": "cashout", "amount": 0.4, "label": "Early Investor"},
        {"day": 300, "type": "loan", "amount": 0.3, "label": "Early Investor"},
        {"day": 360, "type": "revenue", "amount": 15, "label": "Recovery"},
    ),
)


BOOM_BUST_WITH_LIQUIDITY = Scenario(
    key="boom-bust-with-liquidity",
    name="Boom-Bust + Volatility Liquidity",
    description="Boom-bust cycle with a loan taken after the correction.",
    narrative="Participants borrow during the fluctuations to manage risk.",
    base="boom-bust",
    records=(
        {"day": 0, "type": "investment", "amount": 10, "label": "Early Investor"},
        {"day": 60, "type": "revenue", "amount": 5, "label": "Initial Growth"},
        {"day": 120, "type": "revenue", "amount": 20, "label": "Boom Phase"},
        {"day": 180, "type": "revenue", "amount": 50, "label": "Peak Growth"},
        {"day": 240, "type": "revenue", "amount": 30, "label": "Market Correction"},
        {"day": 300, "type": "loan", "amount": 0.4, "label": "Early Investor"},
        {"day": 360, "type": "revenue", "amount": 15, "label": "Recovery"},
    ),
)


SCENARIOS: Dict[str, Scenario] = {
    s.key: s for s in (
        DEFAULT_SCENARIO,
        CONSERVATIVE_GROWTH,
        HYPERGROWTH,
        BOOTSTRAP_SCALE,
        VC_FUELED,
        COMMUNITY_DRIVEN,
        BOOM_BUST,
        CONSERVATIVE_GROWTH_WITH_LOANS,
        CONSERVATIVE_GROWTH_WITH_EXITS,
        HYPERGROWTH_WITH_EXITS,
        HYPERGROWTH_WITH_LOANS,
        BOOTSTRAP_WITH_LIQUIDITY,
        BOOTSTRAP_WITH_EXITS,
        VC_FUELED_WITH_EXITS,
        VC_FUELED_WITH_LOANS,
        COMMUNITY_WITH_LIQUIDITY,
        COMMUNITY_WITH_EXITS,
        BOOM_BUST_WITH_TIMING,
        BOOM_BUST_WITH_LIQUIDITY,
    )
}


def get_scenario(key: str) -> Scenario:
    """
    Look up a scenario by key.

    Raises:
        KeyError: If no scenario has that key.
    """
    try:
        return SCENARIOS[key]
    except KeyError:
        raise KeyError(f"Unknown scenario {key!r}; known: {', '.join(sorted(SCENARIOS))}") from None


def operations_for(base_key: str) -> List[Scenario]:
    """
    Operations scenarios that extend the growth scenario `base_key`.

    Raises:
        KeyError: If no scenario has that key.
    """
    get_scenario(base_key)
    return [s for s in SCENARIOS.values() if s.base == base_key]
