"""
demo.py - Revnet Walkthrough

Runs a preset scenario through the state machine and prints what the
planner's results panel shows:

1. TIMELINE: supply, backing and price on every day something happens
2. HOLDERS: who owns the tokens, what is locked, what each could borrow
3. WHAT-IF: admit an extra event into a copy and compare

The event log is the only source of truth. Every number below is a replay
of that log under the stage timeline, so editing either one and asking
again always gives a consistent answer.

Run:
    python demo.py                    # the sample Revnet
    python demo.py vc-fueled          # any key from SCENARIOS
    python demo.py hypergrowth hypergrowth-with-loans hypergrowth-with-exits
                                      # growth preset plus operations presets
"""

import sys
from decimal import Decimal

from revnet import (
    Calculator,
    EventLog,
    EventValidationError,
    RevnetStateMachine,
    SCENARIOS,
    StageTimeline,
    admit_event,
    cashout_event,
    format_currency,
    format_tokens,
    get_scenario,
    TOKEN_SCALE,
)


# =============================================================================
# TIMELINE
# =============================================================================

def show_timeline(machine: RevnetStateMachine):
    print("=" * 78)
    print("TIMELINE")
    print("=" * 78)
    print(f"{'Day':>5} {'Event':<28} {'Supply':>12} {'Backing':>18} {'Token value':>12}")
    print("-" * 78)

    results = Calculator(machine).run()
    for row in results:
        if not row.events:
            continue
        for event in row.events:
            description = f"{event.type.value} {event.label}"[:28]
            print(
                f"{row.day:>5} {description:<28} {format_tokens(row.total_supply):>12} "
                f"{format_currency(row.revnet_backing):>18} "
                f"{format_currency(row.cash_out_value_per_token, places=4):>12}"
            )
        if row.fees.total:
            print(f"{'':>5}   fees: internal {format_currency(row.fees.internal)}, "
                  f"external {format_currency(row.fees.external)}")
    return results


# =============================================================================
# HOLDERS
# =============================================================================

def show_holders(machine: RevnetStateMachine, day: int):
    print("\n" + "=" * 78)
    print(f"HOLDERS ON DAY {day}")
    print("=" * 78)
    print(f"{'Label':<20} {'Tokens':>12} {'Locked':>12} {'Owes':>16} {'Could borrow':>16}")
    print("-" * 78)

    state = machine.get_state_at_day(day)
    for label in machine.get_token_holders(day):
        liability = machine.get_outstanding_liability(label, day)
        print(
            f"{label:<20} {format_tokens(state.tokens_for(label)):>12} "
            f"{format_tokens(state.collateralized_for(label)):>12} "
            f"{format_currency(liability.total):>16} "
            f"{format_currency(machine.get_loan_potential(label, day)):>16}"
        )


# =============================================================================
# WHAT-IF
# =============================================================================

def show_what_if(machine: RevnetStateMachine, day: int):
    print("\n" + "=" * 78)
    print("WHAT-IF: THE LARGEST HOLDER CASHES OUT HALF THE DAY AFTER")
    print("=" * 78)

    state = machine.get_state_at_day(day)
    if not state.tokens_by_label:
        print("Nobody holds tokens yet.")
        return
    holder = max(state.tokens_by_label, key=lambda label: state.tokens_by_label[label])
    tokens = (machine.get_available_tokens(holder, day) / 2).quantize(Decimal(1))

    alternate = RevnetStateMachine(
        EventLog(machine.events.entries()),
        StageTimeline(machine.timeline.stages),
        terms=machine.terms,
        verbose=False,
    )
    try:
        admit_event(alternate, cashout_event(day + 1, tokens, holder))
    except EventValidationError as e:
        print(f"Rejected: {e}")
        return

    before = machine.get_state_at_day(day + 1)
    after = alternate.get_state_at_day(day + 1)
    print(f"{holder} cashes out {format_tokens(tokens)} tokens on day {day + 1}")
    print(f"  Backing:     {format_currency(before.revnet_backing):>18} -> {format_currency(after.revnet_backing)}")
    print(f"  Supply:      {format_tokens(before.total_supply):>18} -> {format_tokens(after.total_supply)}")
    print(f"  Token value: {format_currency(machine.get_cash_out_value_per_token(day + 1), places=4):>18}"
          f" -> {format_currency(alternate.get_cash_out_value_per_token(day + 1), places=4)}")
    print(f"\nOriginal log unchanged at {len(machine.events)} events; "
          f"alternate has {len(alternate.events)}.")


def main(key: str = "default", *overlays: str):
    try:
        scenario = get_scenario(key).with_operations(*overlays)
    except KeyError as e:
        print(e.args[0])
        return 1

    print(f"\n{scenario.name}: {scenario.description}")
    print(f"Amounts in {format_currency(TOKEN_SCALE, places=0)} units; "
          f"other presets: {', '.join(k for k in SCENARIOS if k != key)}\n")

    machine = scenario.build(verbose=False)
    results = show_timeline(machine)
    last_day = results[-1].day if results else 0
    show_holders(machine, last_day)
    show_what_if(machine, last_day)
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:]))
