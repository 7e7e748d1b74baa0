from datetime import UTC, datetime

from src.adapters.clock import FixedClock, SystemClock
from src.adapters.memory_remote import InMemoryContentRemote


def test_system_clock():
    clock = SystemClock()
    now = clock.now()
    assert now.tzinfo is not None
    # Sanity check: is it close to real now?
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_fixed_clock_stamps_remote_records():
    fixed = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
    remote = InMemoryContentRemote(clock=FixedClock(fixed))

    record = remote.seed("popup", {"type": "link"})

    assert record["created_at"] == fixed.isoformat()
    assert record["updated_at"] == fixed.isoformat()
