"""
Bar interval enumerations.

This module defines the allowed intervals for historical data requests.
"""

from enum import StrEnum


class Interval(StrEnum):
    """
    Allowed bar intervals.

    Follows standard charting conventions for candlestick intervals.
    Supports minute, hour, day, week and month bars.
    """

    # Minute intervals
    M1 = "1m"  # 1 minute
    M5 = "5m"  # 5 minutes
    M15 = "15m"  # 15 minutes
    M30 = "30m"  # 30 minutes

    # Hour intervals
    H1 = "1h"  # 1 hour
    H4 = "4h"  # 4 hours

    # Day/Week/Month intervals
    D1 = "1d"  # 1 day
    W1 = "1w"  # 1 week
    MN1 = "1M"  # 1 month

    @property
    def is_intraday(self) -> bool:
        """Check if interval is intraday (less than 1 day)."""
        return self in [self.M1, self.M5, self.M15, self.M30, self.H1, self.H4]
