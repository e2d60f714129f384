"""GxT trading agent: multi-timeframe signal scoring, risk gating and backtesting."""

__version__ = "0.1.0"
