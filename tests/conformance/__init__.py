"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the Revnet state machine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. replay_determinism.py - State is a pure function of (events, stages, day)
2. value_conservation.py - Dollars and tokens are neither lost nor invented
3. temporal_memoisation.py - Day ordering, causality and invisible caching
4. loan_invariants.py - Grace period, FIFO repayment, collateral bounds

These tests use hypothesis for property-based testing.
"""
