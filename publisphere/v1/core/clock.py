from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current time; injected so scheduling is testable."""

    def now(self) -> datetime:
        """Return the current instant as an aware UTC datetime."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)
