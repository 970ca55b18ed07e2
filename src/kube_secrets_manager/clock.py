"""Injectable time sources.

The manager never calls ``datetime.now`` directly; it asks the clock it was
constructed with. ``FakeClock`` lets tests pin and move time explicitly.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Interface implemented by all time sources."""

    def now(self) -> datetime:
        """Return the current instant as a timezone-aware datetime."""


class RealClock:
    """Clock backed by the system wall clock, always in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return "RealClock()"


class FakeClock:
    """Manually controlled clock.

    Example:
        >>> clock = FakeClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        >>> clock.step(3600)
        >>> clock.now()
        datetime.datetime(2024, 1, 1, 1, 0, tzinfo=datetime.timezone.utc)

    """

    def __init__(self, start: datetime | None = None) -> None:
        """Initialize the clock.

        Args:
            start: Initial instant. Defaults to 2024-01-01 00:00:00 UTC.
                Naive datetimes are interpreted as UTC.

        """
        if start is None:
            start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._now: datetime = _as_utc(start)

    def now(self) -> datetime:
        return self._now

    def set(self, instant: datetime) -> None:
        """Jump to the given instant."""
        self._now = _as_utc(instant)

    def step(self, seconds: float) -> None:
        """Advance the clock; negative values move it backwards."""
        self._now += timedelta(seconds=seconds)

    def __repr__(self) -> str:
        return f"FakeClock(now={self._now.isoformat()!r})"


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)
