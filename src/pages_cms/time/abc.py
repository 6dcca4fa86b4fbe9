"""Abstract time operations for dependency injection."""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract time operations.

    Injected wherever the current time matters (branch name suffixes,
    baseline timestamps) so tests can pin it.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current timezone-aware UTC datetime."""
        ...
