"""
Core type definitions and utilities.
"""

# Re-export financial utilities for easy access
from .financial import (
    FINANCIAL_DECIMALS,
    PRICE_DECIMALS,
    ZERO,
    relative_change,
    round_amount,
    round_price,
    safe_divide,
)

__all__ = [
    # Utility functions
    "round_price",
    "round_amount",
    "safe_divide",
    "relative_change",
    # Constants
    "FINANCIAL_DECIMALS",
    "PRICE_DECIMALS",
    "ZERO",
]
