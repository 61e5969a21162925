"""
Financial helpers for backtesting calculations.

Backtests run on float arithmetic: float64 gives ~15-16 significant digits,
which is plenty for replaying historical bars. Use the rounding helpers
whenever a value is presented or booked so repeated runs stay comparable.
"""

# Financial calculation precision (number of decimal places)
FINANCIAL_DECIMALS = 8  # 8 decimal places for quantities and cash
PRICE_DECIMALS = 2  # 2 decimal places for USD prices

ZERO = 0.0


def round_price(price: float) -> float:
    """Round price to the precision used for quotes."""
    return round(price, PRICE_DECIMALS)


def round_amount(amount: float) -> float:
    """Round cash or quantity to booking precision."""
    return round(amount, FINANCIAL_DECIMALS)


def safe_divide(numerator: float, denominator: float, default: float = ZERO) -> float:
    """Divide, returning ``default`` when the denominator is zero.

    Examples:
        >>> safe_divide(10.0, 4.0)
        2.5
        >>> safe_divide(1.0, 0.0)
        0.0
    """
    if denominator == ZERO:
        return default
    return numerator / denominator


def relative_change(previous: float, current: float) -> float:
    """Fractional change from ``previous`` to ``current`` (0 if previous is 0)."""
    return safe_divide(current - previous, previous)
