"""
Bonding curve pricing for cash-outs and loans.

This module implements the single pricing primitive of the Revnet:

    value = (T * x / S) * ((1 - r) + (x * r / S))

where
    x = tokens being cashed out (or locked as collateral)
    S = token supply
    T = treasury backing
    r = cash out tax rate

At r = 0 the payout is a linear pro-rata share (T * x / S). At r = 1 it is
the quadratic share T * x^2 / S^2, so the tax interpolates between a flat
share and an exit-penalising convex curve. The same formula values cash-outs,
loans and loan potential.

Scalar functions work in Decimal for exact replay. cash_out_curve() is a
numpy version for plotting and sweeps.
"""

from decimal import Decimal
from typing import Union

import numpy as np

from .core import ZERO, ONE, to_decimal


ArrayLike = Union[float, np.ndarray]


def calculate_cash_out_value_for_event(
    tokens,
    total_supply,
    treasury,
    cash_out_tax,
) -> Decimal:
    """
    Dollar value of `tokens` against the bonding curve.

    Args:
        tokens: Tokens cashed out or locked as collateral
        total_supply: Token supply the curve is evaluated against
        treasury: Treasury backing the curve is evaluated against
        cash_out_tax: Tax rate in [0, 1]

    Returns:
        Value in dollars. Decimal("0") when the supply is not positive.

    Example:
        >>> calculate_cash_out_value_for_event(1, 10, 10, Decimal("0.1"))
        Decimal('0.91')
    """
    x = to_decimal(tokens)
    supply = to_decimal(total_supply)
    backing = to_decimal(treasury)
    tax = to_decimal(cash_out_tax)

    if supply <= ZERO:
        return ZERO

    return (backing * x / supply) * ((ONE - tax) + (x * tax / supply))


def cash_out_curve(
    tokens: ArrayLike,
    total_supply: float,
    treasury: float,
    cash_out_tax: float,
) -> np.ndarray:
    """
    Vectorised bonding curve over an array of token amounts.

    Float precision; intended for charts and parameter sweeps, not for the
    ledger fold.

    Example:
        >>> x = np.linspace(0, 100, 5)
        >>> cash_out_curve(x, 100.0, 1000.0, 0.5)
        array([   0.  ,  156.25,  375.  ,  656.25, 1000.  ])
    """
    x = np.asarray(tokens, dtype=float)
    if total_supply <= 0:
        return np.zeros_like(x)
    share = x / total_supply
    return treasury * share * ((1.0 - cash_out_tax) + share * cash_out_tax)


def cash_out_share(fraction, cash_out_tax) -> Decimal:
    """
    Fraction of the treasury received for cashing out `fraction` of the supply.

    Cashing out 10% of tokens at a 0.1 tax yields 9.1% of the treasury.
    """
    return calculate_cash_out_value_for_event(fraction, ONE, ONE, cash_out_tax)


def cash_out_value_per_token(total_supply, treasury, cash_out_tax) -> Decimal:
    """Marginal value of a single token at the current supply and backing."""
    return calculate_cash_out_value_for_event(ONE, total_supply, treasury, cash_out_tax)
