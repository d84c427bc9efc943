from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count

from datastore.oplog import OperationalLog
from storage.memory_store import InMemoryKeyValueStore


def _stepping_clock():
    ticks = count()
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return lambda: base + timedelta(seconds=next(ticks))


def test_recent_keeps_latest_entries_newest_first() -> None:
    oplog = OperationalLog(InMemoryKeyValueStore(), clock=_stepping_clock())

    for index in range(1100):
        oplog.record(f"payload-{index}")

    entries = oplog.recent()

    assert len(entries) == 1001
    assert entries[0].endswith(" payload-1099")
    assert entries[-1].endswith(" payload-99")


def test_entries_are_prefixed_with_receive_time() -> None:
    oplog = OperationalLog(InMemoryKeyValueStore(), clock=_stepping_clock())

    oplog.record("[2024-1-1 10:0:0;42;60;3300;200;0;255]")

    assert oplog.recent() == ["2024-01-01T00:00:00+00:00 [2024-1-1 10:0:0;42;60;3300;200;0;255]"]
