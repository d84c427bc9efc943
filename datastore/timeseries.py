from __future__ import annotations

import logging
from typing import List, Optional

from datastore import keys
from models.records import ControllerReading, Tick
from services.codec import tick_rank
from storage.base import KeyValueStore

logger = logging.getLogger(__name__)

# Redis reads an inclusive stop of -1 as "through the last element".
_OPEN_STOP = -1


class TickSeriesStore:
    """Per-sensor tick series held in sorted sets scored by epoch seconds.

    Members are the serialized tick payloads, so appending an identical tick
    twice leaves a single entry.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def append(self, tick: Tick) -> bool:
        """Store ``tick``; return False when an identical entry already existed."""
        added = self.store.zadd(
            keys.sensor_ticks(tick.sensor_id), tick.to_payload(), tick_rank(tick)
        )
        if not added:
            logger.debug("Duplicate tick ignored", extra={"sensor_id": tick.sensor_id})
        return bool(added)

    def query_by_rank(
        self, sensor_id: int, start_index: int = 0, stop_index: Optional[int] = None
    ) -> List[Tick]:
        """Return ticks newest first between two inclusive 0-based positions."""
        stop = _OPEN_STOP if stop_index is None else stop_index
        members = self.store.zrevrange(keys.sensor_ticks(sensor_id), start_index, stop)
        return [Tick.from_payload(member) for member in members]

    def query_by_time_range(self, sensor_id: int, start_epoch: int, end_epoch: int) -> List[Tick]:
        """Return ticks oldest first with ``start_epoch <= rank <= end_epoch``."""
        members = self.store.zrangebyscore(keys.sensor_ticks(sensor_id), start_epoch, end_epoch)
        return [Tick.from_payload(member) for member in members]

    def count(self, sensor_id: int) -> int:
        return self.store.zcard(keys.sensor_ticks(sensor_id))

    def latest(self, sensor_id: int) -> Optional[Tick]:
        ticks = self.query_by_rank(sensor_id, 0, 0)
        return ticks[0] if ticks else None

    def append_controller_reading(self, reading: ControllerReading) -> bool:
        added = self.store.zadd(
            keys.controller_readings(reading.controller_id),
            reading.to_payload(),
            reading.received_at.timestamp(),
        )
        return bool(added)

    def query_controller_readings(
        self, controller_id: str, start_index: int = 0, stop_index: Optional[int] = None
    ) -> List[ControllerReading]:
        stop = _OPEN_STOP if stop_index is None else stop_index
        members = self.store.zrevrange(keys.controller_readings(controller_id), start_index, stop)
        return [ControllerReading.from_payload(member) for member in members]
