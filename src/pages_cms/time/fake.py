"""Fake Time implementation for testing."""

from datetime import UTC, datetime, timedelta

from pages_cms.time.abc import Time


class FakeTime(Time):
    """Time frozen at a configurable instant.

    Example:
        >>> time = FakeTime(datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC))
        >>> time.advance(timedelta(seconds=30))
    """

    def __init__(self, current: datetime | None = None) -> None:
        self._current = current or datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    def now(self) -> datetime:
        return self._current

    def advance(self, delta: timedelta) -> None:
        self._current = self._current + delta
