"""Runtime state containers."""

from .stats import LinkStatistics

__all__ = ["LinkStatistics"]
