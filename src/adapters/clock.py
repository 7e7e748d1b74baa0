from datetime import UTC, datetime


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock pinned to a single instant, for deterministic timestamps."""

    def __init__(self, fixed: datetime) -> None:
        self._time = fixed

    def now(self) -> datetime:
        return self._time
