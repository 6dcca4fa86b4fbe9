"""Production implementation of Time."""

from datetime import UTC, datetime

from pages_cms.time.abc import Time


class RealTime(Time):
    """Time backed by the system clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)
