"""
test_scenarios.py - Unit tests for planner records and preset scenarios

Tests:
- Record conversion: scaling, type mapping, generic labels
- Records that are dropped instead of raising
- Scenario lookup and build
- Layering operations presets over growth presets
"""

import pytest
from decimal import Decimal

from revnet import (
    EventType,
    RevnetStateMachine,
    SCENARIOS,
    DEFAULT_SCENARIO,
    GENERIC_INVESTOR_LABEL,
    GENERIC_REVENUE_LABEL,
    event_from_record,
    events_from_records,
    get_scenario,
    operations_for,
)


# ============================================================================
# RECORD CONVERSION
# ============================================================================

class TestEventFromRecord:
    """Tests for converting a single planner record."""

    def test_amounts_are_in_millions(self):
        event = event_from_record({"day": 0, "type": "investment", "amount": 10, "label": "Angel"})
        assert event.amount == Decimal("10000000")
        assert event.type == EventType.INVESTMENT
        assert event.label == "Angel"

    def test_string_amount_with_commas(self):
        event = event_from_record({"day": 3, "type": "revenue", "amount": "1,250", "label": "Sales"})
        assert event.amount == Decimal("1250000000")

    def test_fractional_amount(self):
        event = event_from_record({"day": 1, "type": "loan", "amount": 0.91, "label": "Team"})
        assert event.amount == Decimal("910000")

    def test_custom_scale(self):
        event = event_from_record(
            {"day": 0, "type": "investment", "amount": 10, "label": "A"}, scale=Decimal("1"))
        assert event.amount == Decimal("10")

    @pytest.mark.parametrize("type_string", ["payback-loan", "repay"])
    def test_repayment_aliases(self, type_string):
        event = event_from_record({"day": 5, "type": type_string, "amount": 1, "label": "Team"})
        assert event.type == EventType.REPAY

    @pytest.mark.parametrize("type_string,kind", [
        ("Team-loan", EventType.LOAN),
        ("Team-repay", EventType.REPAY),
        ("Team-payback-loan", EventType.REPAY),
        ("Team-cashout", EventType.CASHOUT),
    ])
    def test_label_from_type_string(self, type_string, kind):
        event = event_from_record({"day": 5, "type": type_string, "amount": 1})
        assert event.type == kind
        assert event.label == "Team"

    def test_explicit_label_wins_over_type_string(self):
        event = event_from_record({"day": 5, "type": "Team-loan", "amount": 1, "label": "Advisor"})
        assert event.label == "Advisor"

    def test_generic_labels(self):
        investment = event_from_record({"day": 0, "type": "investment", "amount": 1})
        revenue = event_from_record({"day": 0, "type": "revenue", "amount": 1, "label": "  "})
        assert investment.label == GENERIC_INVESTOR_LABEL
        assert revenue.label == GENERIC_REVENUE_LABEL

    @pytest.mark.parametrize("record", [
        {"day": 0, "type": "investment", "amount": 0, "label": "A"},
        {"day": 0, "type": "investment", "amount": -1, "label": "A"},
        {"day": 0, "type": "investment", "amount": "abc", "label": "A"},
        {"day": 0, "type": "investment", "amount": "", "label": "A"},
        {"day": 0, "type": "investment", "amount": None, "label": "A"},
        {"day": 0, "type": "investment", "amount": True, "label": "A"},
        {"day": -1, "type": "investment", "amount": 1, "label": "A"},
        {"day": "soon", "type": "investment", "amount": 1, "label": "A"},
        {"type": "investment", "amount": 1, "label": "A"},
        {"day": 0, "type": "airdrop", "amount": 1, "label": "A"},
        {"day": 0, "type": "loan", "amount": 1},
        {"day": 0, "type": "investment", "amount": 1, "label": "A", "visible": False},
    ])
    def test_unusable_records_are_skipped(self, record):
        assert event_from_record(record) is None

    def test_visible_true_is_kept(self):
        record = {"day": 0, "type": "investment", "amount": 1, "label": "A", "visible": True}
        assert event_from_record(record) is not None


class TestEventsFromRecords:
    """Tests for converting a record list."""

    def test_keeps_entry_order_and_drops_unusable(self):
        records = [
            {"day": 10, "type": "revenue", "amount": 2, "label": "Q1"},
            {"day": 0, "type": "investment", "amount": 0, "label": "Nobody"},
            {"day": 0, "type": "investment", "amount": 5, "label": "Seed"},
        ]
        events = events_from_records(records)
        assert [(e.day, e.label) for e in events] == [(10, "Q1"), (0, "Seed")]

    def test_empty(self):
        assert events_from_records([]) == []


# ============================================================================
# SCENARIOS
# ============================================================================

class TestScenarios:
    """Tests for preset lookup and build."""

    GROWTH = {
        "conservative-growth", "hypergrowth", "bootstrap-scale",
        "vc-fueled", "community-driven", "boom-bust",
    }

    def test_registry_keys(self):
        assert len(SCENARIOS) == 19
        assert "default" in SCENARIOS
        assert self.GROWTH <= set(SCENARIOS)
        for key, scenario in SCENARIOS.items():
            assert scenario.key == key

    def test_every_operations_preset_extends_a_growth_preset(self):
        operations = [s for s in SCENARIOS.values() if s.is_operations]
        assert len(operations) == 12
        for scenario in operations:
            assert scenario.base in self.GROWTH
            assert scenario.operations()

    def test_growth_presets_have_no_operations(self):
        for key in self.GROWTH:
            assert get_scenario(key).operations() == ()
            assert not get_scenario(key).is_operations
            assert get_scenario(key).narrative

    @pytest.mark.parametrize("base,expected", [
        ("conservative-growth", ["conservative-growth-with-loans", "conservative-growth-with-exits"]),
        ("bootstrap-scale", ["bootstrap-with-liquidity", "bootstrap-with-exits"]),
        ("community-driven", ["community-with-liquidity", "community-with-exits"]),
        ("boom-bust", ["boom-bust-with-timing", "boom-bust-with-liquidity"]),
        ("default", []),
    ])
    def test_operations_for(self, base, expected):
        assert [s.key for s in operations_for(base)] == expected

    def test_operations_for_unknown_base(self):
        with pytest.raises(KeyError, match="moonshot"):
            operations_for("moonshot")

    def test_get_scenario(self):
        assert get_scenario("default") is DEFAULT_SCENARIO

    def test_unknown_scenario(self):
        with pytest.raises(KeyError, match="vc-fueled"):
            get_scenario("moonshot")

    def test_default_events(self):
        events = DEFAULT_SCENARIO.events()
        assert [e.type for e in events] == [
            EventType.INVESTMENT, EventType.LOAN, EventType.REPAY, EventType.CASHOUT,
        ]
        assert events[2].amount == Decimal("500000")

    def test_build_returns_fresh_machine(self):
        first = DEFAULT_SCENARIO.build()
        second = DEFAULT_SCENARIO.build()
        assert isinstance(first, RevnetStateMachine)
        assert first.events is not second.events
        assert len(first.events) == 4
        assert len(first.timeline) == 1
        assert first.verbose is False

    @pytest.mark.parametrize("key", sorted(SCENARIOS))
    def test_every_preset_builds(self, key):
        machine = get_scenario(key).build()
        state = machine.get_state_at_day(machine.events.max_day)
        assert state.total_supply > 0
        assert state.revnet_backing > 0


class TestWithOperations:
    """Layering operations presets over a growth preset."""

    def test_adds_only_entity_actions(self):
        base = get_scenario("hypergrowth")
        combined = base.with_operations("hypergrowth-with-exits")
        events = combined.events()
        assert len(events) == len(base.records) + 2
        cashouts = [e for e in events if e.type == EventType.CASHOUT]
        assert [(e.day, e.label) for e in cashouts] == [(360, "Seed Investor"), (540, "Seed Investor")]
        # The overlay's own growth records are not counted twice
        assert sum(1 for e in events if e.day == 0) == 1

    def test_records_are_ordered_by_day(self):
        combined = get_scenario("conservative-growth").with_operations("conservative-growth-with-loans")
        days = [r["day"] for r in combined.records]
        assert days == sorted(days)
        assert combined.records[1] == {"day": 30, "type": "loan", "amount": 0.8, "label": "Team"}

    def test_same_day_keeps_base_first(self):
        combined = get_scenario("hypergrowth").with_operations("hypergrowth-with-exits")
        day_360 = [r for r in combined.records if r["day"] == 360]
        assert [r["type"] for r in day_360] == ["revenue", "cashout"]

    def test_several_overlays(self):
        base = get_scenario("vc-fueled")
        combined = base.with_operations(
            get_scenario("vc-fueled-with-exits"), "vc-fueled-with-loans")
        loans = get_scenario("vc-fueled-with-loans").operations()
        assert len(combined.records) == len(base.records) + 1 + len(loans)
        assert combined.key == "vc-fueled+vc-fueled-with-exits+vc-fueled-with-loans"
        assert combined.name.startswith("VC-Fueled Growth + ")
        assert combined.base == "vc-fueled"
        assert combined.is_operations
        assert combined.stages == base.stages
        assert base.narrative in combined.narrative

    def test_no_overlays_is_identity(self):
        base = get_scenario("boom-bust")
        assert base.with_operations() is base

    def test_unknown_overlay(self):
        with pytest.raises(KeyError, match="moonshot"):
            get_scenario("boom-bust").with_operations("moonshot")

    def test_base_is_unchanged(self):
        base = get_scenario("bootstrap-scale")
        before = base.records
        base.with_operations("bootstrap-with-liquidity", "bootstrap-with-exits")
        assert base.records is before
        assert len(base.records) == 6

    def test_combined_scenario_replays(self):
        combined = get_scenario("community-driven").with_operations(
            "community-with-liquidity", "community-with-exits")
        machine = combined.build()
        state = machine.get_state_at_day(machine.events.max_day)
        assert state.revnet_backing > 0
        assert state.collateralized_for("Community Fund") == Decimal("100000")
