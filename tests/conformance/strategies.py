"""
Hypothesis strategies shared by the conformance suite.
"""

from decimal import Decimal

from hypothesis import strategies as st

from revnet import Event, EventType, StageDefinition


LABELS = ["Angel", "Seed", "Team"]

amounts = st.decimals(
    min_value=Decimal("1"), max_value=Decimal("100000"),
    allow_nan=False, allow_infinity=False, places=2,
)

events = st.builds(
    Event,
    day=st.integers(min_value=0, max_value=400),
    type=st.sampled_from(list(EventType)),
    amount=amounts,
    label=st.sampled_from(LABELS),
)

issuance_events = st.builds(
    Event,
    day=st.integers(min_value=0, max_value=400),
    type=st.sampled_from([EventType.INVESTMENT, EventType.REVENUE]),
    amount=amounts,
    label=st.sampled_from(LABELS),
)

event_lists = st.lists(events, min_size=1, max_size=25)

stages = st.builds(
    StageDefinition,
    splits=st.dictionaries(
        st.sampled_from(["Team", "Ops"]),
        st.decimals(min_value=Decimal("0"), max_value=Decimal("0.5"), places=2),
        max_size=2,
    ),
    cash_out_tax=st.decimals(min_value=Decimal("0"), max_value=Decimal("1"), places=2),
)
