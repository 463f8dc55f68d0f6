"""
test_stages.py - Unit tests for the stage resolver

Tests:
- StageDefinition coercion and validation
- Day -> stage lookup across stage boundaries
- Open-ended last stage, zero-duration stages, empty timeline
- Step-function issuance price
"""

import pytest
from decimal import Decimal
from hypothesis import given, settings
from hypothesis import strategies as st

from revnet import (
    StageDefinition,
    StageTimeline,
    NoStageConfigured,
    default_stage,
    issuance_price,
)
from revnet.core import INFINITY


# ============================================================================
# STAGE DEFINITION TESTS
# ============================================================================

class TestStageDefinition:
    """Tests for StageDefinition."""

    def test_coerces_numbers(self):
        stage = StageDefinition(duration_days=90, splits={"Team": 0.2}, cash_out_tax=0.1)
        assert stage.duration_days == Decimal("90")
        assert stage.splits["Team"] == Decimal("0.2")
        assert stage.cash_out_tax == Decimal("0.1")

    @pytest.mark.parametrize("tax", [-0.1, 1.5])
    def test_rejects_tax_outside_unit_interval(self, tax):
        with pytest.raises(ValueError, match="tax"):
            StageDefinition(cash_out_tax=tax)

    def test_cuts_need_period(self):
        with pytest.raises(ValueError, match="cut_period"):
            StageDefinition(has_cuts=True, issuance_cut=0.5)

    def test_whole_float_cut_period(self):
        stage = StageDefinition(has_cuts=True, issuance_cut=0.5, cut_period=90.0)
        assert stage.cut_period == 90
        assert isinstance(stage.cut_period, int)
        assert StageTimeline([stage]).issuance_price_at_day(100) == Decimal("1.5")

    @pytest.mark.parametrize("period", [90.5, True, "soon", float("inf")])
    def test_rejects_non_whole_cut_period(self, period):
        with pytest.raises(ValueError, match="cut_period"):
            StageDefinition(has_cuts=True, issuance_cut=0.5, cut_period=period)

    def test_splits_are_a_private_copy(self):
        splits = {"Team": 0.2}
        stage = StageDefinition(splits=splits)
        splits["Team"] = 0.9
        splits["Ops"] = 0.1
        assert stage.splits == {"Team": Decimal("0.2")}
        with pytest.raises(TypeError):
            stage.splits["Team"] = Decimal("0.3")

    def test_rejects_negative_split(self):
        with pytest.raises(ValueError, match="Split"):
            StageDefinition(splits={"Team": -0.1})

    def test_effective_splits_drop_blank_and_zero(self):
        stage = StageDefinition(splits={"Team": 0.3, " ": 0.2, "Advisors": 0, " Ops ": 0.1})
        assert stage.effective_splits == {"Team": Decimal("0.3"), "Ops": Decimal("0.1")}
        assert stage.total_split == Decimal("0.6")

    def test_default_stage(self):
        stage = default_stage()
        assert stage.splits == {"Team": Decimal("0.5")}
        assert stage.has_cuts
        assert stage.issuance_cut == Decimal("0.5")
        assert stage.cut_period == 90
        assert stage.cash_out_tax == Decimal("0.1")


# ============================================================================
# RESOLVER TESTS
# ============================================================================

class TestGetStageAtDay:
    """Tests for StageTimeline.get_stage_at_day."""

    def test_empty_timeline_fails_fast(self):
        with pytest.raises(NoStageConfigured):
            StageTimeline().get_stage_at_day(0)

    def test_single_stage_is_open_ended(self):
        timeline = StageTimeline([StageDefinition(duration_days=10, cash_out_tax=0.2)])
        stage = timeline.get_stage_at_day(10_000)
        assert stage.stage_index == 0
        assert stage.duration_days == INFINITY
        assert stage.stage_end_day == INFINITY

    def test_boundaries(self, two_stage_timeline):
        assert two_stage_timeline.get_stage_at_day(0).stage_index == 0
        assert two_stage_timeline.get_stage_at_day(99).stage_index == 0
        assert two_stage_timeline.get_stage_at_day(100).stage_index == 1
        assert two_stage_timeline.get_stage_at_day(5000).stage_index == 1

    def test_resolved_fields(self, two_stage_timeline):
        first = two_stage_timeline.get_stage_at_day(50)
        assert first.splits == {"Team": Decimal("0.5")}
        assert first.investor_split == Decimal("0.5")
        assert first.cash_out_tax == Decimal("0.1")
        assert first.stage_start_day == 0
        assert first.duration_days == Decimal("100")

        last = two_stage_timeline.get_stage_at_day(150)
        assert last.investor_split == Decimal("0.8")
        assert last.stage_start_day == Decimal("100")
        # Configured duration of the last stage is ignored
        assert last.duration_days == INFINITY

    def test_zero_duration_stage_covers_no_days(self):
        timeline = StageTimeline([
            StageDefinition(duration_days=0, cash_out_tax=0.9),
            StageDefinition(duration_days=None, cash_out_tax=0.8),
            StageDefinition(cash_out_tax=0.1),
        ])
        stage = timeline.get_stage_at_day(0)
        assert stage.stage_index == 2
        assert stage.cash_out_tax == Decimal("0.1")

    def test_negative_day_resolves_to_first_stage(self, two_stage_timeline):
        assert two_stage_timeline.get_stage_at_day(-1).stage_index == 0

    def test_no_cuts_clears_cut_parameters(self):
        timeline = StageTimeline([StageDefinition(has_cuts=False, issuance_cut=0.5, cut_period=30)])
        stage = timeline.get_stage_at_day(0)
        assert stage.issuance_cut == 0
        assert stage.cut_period is None

    def test_investor_split_floored_at_zero(self):
        timeline = StageTimeline([StageDefinition(splits={"A": 0.7, "B": 0.6})])
        assert timeline.get_stage_at_day(0).investor_split == 0

    def test_edits_bump_version(self):
        timeline = StageTimeline([default_stage(10)])
        v0 = timeline.version
        timeline.add(default_stage())
        timeline.replace(0, default_stage(20))
        timeline.remove(1)
        assert timeline.version == v0 + 3
        assert len(timeline) == 1

    def test_replace_moves_boundary(self):
        timeline = StageTimeline([StageDefinition(duration_days=10), StageDefinition()])
        assert timeline.get_stage_at_day(15).stage_index == 1
        timeline.replace(0, StageDefinition(duration_days=20))
        assert timeline.get_stage_at_day(15).stage_index == 0

    def test_split_labels(self, two_stage_timeline):
        assert two_stage_timeline.split_labels() == ["Team"]

    @given(
        durations=st.lists(st.integers(min_value=0, max_value=50), min_size=1, max_size=6),
        day=st.integers(min_value=0, max_value=400),
    )
    @settings(max_examples=100)
    def test_lookup_matches_cumulative_walk(self, durations, day):
        """PROPERTY: binary search agrees with a linear walk over stage ends."""
        timeline = StageTimeline([StageDefinition(duration_days=d) for d in durations])
        expected = len(durations) - 1
        cumulative = 0
        for i, duration in enumerate(durations[:-1]):
            if day < cumulative + duration:
                expected = i
                break
            cumulative += duration
        assert timeline.stage_index_at_day(day) == expected


# ============================================================================
# ISSUANCE PRICE TESTS
# ============================================================================

class TestIssuancePrice:
    """Tests for the step-function issuance price."""

    def test_flat_without_cuts(self, team_stage):
        timeline = StageTimeline([team_stage])
        assert timeline.issuance_price_at_day(0) == 1
        assert timeline.issuance_price_at_day(1000) == 1

    def test_steps_at_cut_boundaries(self, cut_stage):
        timeline = StageTimeline([cut_stage])
        assert timeline.issuance_price_at_day(0) == Decimal("1")
        assert timeline.issuance_price_at_day(89) == Decimal("1")
        assert timeline.issuance_price_at_day(90) == Decimal("1.5")
        assert timeline.issuance_price_at_day(179) == Decimal("1.5")
        assert timeline.issuance_price_at_day(180) == Decimal("2.25")

    def test_cuts_counted_from_day_zero(self):
        timeline = StageTimeline([
            StageDefinition(duration_days=100),
            StageDefinition(has_cuts=True, issuance_cut=1, cut_period=60),
        ])
        # Second stage starts at day 100 but cuts count from launch
        assert timeline.issuance_price_at_day(100) == Decimal("2")
        assert timeline.issuance_price_at_day(120) == Decimal("4")

    def test_method_and_function_agree(self, cut_stage):
        stage = StageTimeline([cut_stage]).get_stage_at_day(200)
        assert stage.issuance_price(200) == issuance_price(stage, 200)
