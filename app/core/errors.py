from __future__ import annotations


class ChartError(Exception):
    pass


class UninitializedStateError(ChartError):
    """Raised when a live update arrives before the series was initialized."""

    def __init__(self, message: str = 'Please initialize data first.') -> None:
        super().__init__(message)


class ConfigError(ChartError, ValueError):
    pass


class FeedError(ChartError):
    """Network or payload failure in the market data feed."""
