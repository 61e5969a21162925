"""
Core constants and limits.

Defines system-wide constants and resource limits for the backtest
scheduler and the analytics engine.
"""

# Scheduler Limits
MAX_CONCURRENT_JOBS = 3  # RUNNING jobs allowed before admission control rejects
DEFAULT_JOB_LIST_LIMIT = 50  # Default number of jobs returned by listings
PROGRESS_COMPLETE = 100

# Performance Analytics
TRADING_DAYS_PER_YEAR = 252
ANNUAL_RISK_FREE_RATE = 0.02  # 2% annual risk-free rate

# Data Providers
ALPHA_VANTAGE_BASE_URL = "https://www.alphavantage.co/query"
ALPHA_VANTAGE_RATE_LIMIT = 5  # requests per minute on the free tier
SECONDS_PER_MINUTE = 60.0

# Synthetic Data
SYNTHETIC_DAILY_VOLATILITY = 0.02  # 2% daily volatility
SYNTHETIC_DAILY_DRIFT = 0.0005  # Small upward drift
SYNTHETIC_DEFAULT_SYMBOLS = ("AAPL", "MSFT", "GOOGL", "TSLA", "AMZN")
SYNTHETIC_DEFAULT_SEED = 42

# Paper Portfolio
DEFAULT_POSITION_FRACTION = 0.1  # Share of equity committed per BUY signal
MIN_TRADE_QUANTITY = 1.0
