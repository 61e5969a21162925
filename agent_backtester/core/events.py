"""
Publish/subscribe notifications for engines and trackers.

Publishers own an ``EventBus`` and stay transport-agnostic; any number of
independent subscribers can listen to a given event type.
"""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from loguru import logger

from agent_backtester.core.utils.datetime_utils import utc_now


class EventType(StrEnum):
    """Types of events published during a backtest."""

    # Simulation engine
    BACKTEST_STARTED = "backtest_started"
    BACKTEST_PROGRESS = "backtest_progress"
    TIME_STEP_PROCESSED = "time_step_processed"
    BACKTEST_COMPLETED = "backtest_completed"
    BACKTEST_ERROR = "backtest_error"
    BACKTEST_STOPPED = "backtest_stopped"
    PARAMETER_SWEEP_PROGRESS = "parameter_sweep_progress"
    TRADE_EXECUTED = "trade_executed"

    # Portfolio tracker
    PORTFOLIO_UPDATED = "portfolio_updated"
    TRADE_ADDED = "trade_added"


@dataclass(frozen=True)
class Event:
    """A typed notification with its payload."""

    type: EventType
    payload: Any = None
    timestamp: datetime = field(default_factory=utc_now)


EventHandler = Callable[[Event], None]


class EventBus:
    """Synchronous in-process event dispatcher."""

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` for ``event_type``.

        Returns:
            A callable that removes the subscription
        """
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    def publish(self, event_type: EventType, payload: Any = None) -> Event:
        """Deliver an event to every subscriber in registration order.

        A failing subscriber is logged and does not prevent delivery to the
        others, nor does it propagate into the publisher.
        """
        event = Event(type=event_type, payload=payload)
        for handler in list(self._handlers[event_type]):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Event handler failed for {event_type.value}")
        return event

    def subscriber_count(self, event_type: EventType) -> int:
        """Number of handlers registered for ``event_type``."""
        return len(self._handlers[event_type])

    def clear(self) -> None:
        """Remove every subscription."""
        self._handlers.clear()
