"""
Validation utilities for core domain models.

Provides consistent validation across the application.
"""

from agent_backtester.core.exceptions.backtest import ValidationError


def validate_positive(value: float, param_name: str) -> float:
    """Validate that a numeric value is positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated value

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    return value


def validate_rate(rate: float, param_name: str = "rate") -> float:
    """Validate that a rate is a fraction between 0 and 1.

    Args:
        rate: Rate to validate
        param_name: Parameter name for error messages

    Returns:
        The validated rate

    Raises:
        ValidationError: If rate is not between 0 and 1
    """
    if rate < 0 or rate > 1:
        raise ValidationError(f"{param_name} must be between 0 and 1, got {rate}")
    return rate


def validate_symbol(symbol: object, param_name: str = "symbol") -> str:
    """Validate and normalize a ticker symbol.

    Returns:
        The upper-cased, stripped symbol

    Raises:
        ValidationError: If the symbol is not a non-empty string
    """
    if not isinstance(symbol, str) or not symbol.strip():
        raise ValidationError(f"{param_name} must be a non-empty string, got {symbol!r}")
    return symbol.strip().upper()
