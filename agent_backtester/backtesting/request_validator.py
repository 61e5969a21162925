"""
Backtest request validation.

Validation is pure: it inspects the request and either returns or
raises, without touching the job registry.
"""

from agent_backtester.core.exceptions.backtest import ValidationError
from agent_backtester.core.models.job import BacktestRequest


def collect_request_errors(request: BacktestRequest) -> list[str]:
    """Every problem with ``request``, in a stable order."""
    errors: list[str] = []

    if not request.name or not request.name.strip():
        errors.append("Backtest name is required")

    config = request.config
    if config is None:
        errors.append("Backtest config is required")
    else:
        if not config.has_dates():
            errors.append("Start and end dates are required")
        elif not config.is_valid_date_range():
            errors.append("Start date must be before end date")

        if not config.has_symbols():
            errors.append("At least one symbol is required")

        if not config.is_valid_capital():
            errors.append("Initial capital must be positive")

    if not request.agent_configs:
        errors.append("At least one agent configuration is required")

    if request.data_provider is None or request.data_provider.type is None:
        errors.append("Data provider configuration is required")

    return errors


def validate_backtest_request(request: BacktestRequest) -> None:
    """Raise if the request cannot be scheduled.

    Raises:
        ValidationError: Carrying every violation in ``errors``
    """
    errors = collect_request_errors(request)
    if not errors:
        return
    message = errors[0] if len(errors) == 1 else "Invalid backtest request"
    raise ValidationError(message, errors)
