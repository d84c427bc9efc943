"""Orchestrates decoding, storage and association for one transmitted batch."""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from functools import lru_cache
from typing import Callable, Dict, Optional, Set
from zoneinfo import ZoneInfo

from datastore.directory import DirectoryStore
from datastore.timeseries import TickSeriesStore
from models.records import ControllerReading
from services.association import AssociationResolver
from services.codec import DecodeError, decode_tick_record
from services.framing import iter_records
from settings import get_settings
from storage.base import KeyValueStore, StoreError
from storage.redis_store import build_default_store

logger = logging.getLogger(__name__)


class PipelineError(RuntimeError):
    """A batch was aborted part way through.

    Records before the failing one have already been stored and are not
    rolled back.
    """

    def __init__(self, message: str, processed_count: int, record: str) -> None:
        super().__init__(message)
        self.processed_count = processed_count
        self.record = record


class IngestionPipeline:
    """Runs each record of a batch through decode, append and resolve, in order."""

    def __init__(
        self,
        series: TickSeriesStore,
        resolver: AssociationResolver,
        tz: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    ) -> None:
        self.series = series
        self.resolver = resolver
        self.tz = tz
        self.clock = clock

    def process(self, payload: str) -> int:
        """Process every record in ``payload`` and return how many were stored.

        Raises :class:`PipelineError` on the first record that fails to decode
        or store; later records are not attempted.
        """
        processed_count = 0
        touched: Dict[str, Set[int]] = {}
        tick_counts: Dict[str, int] = {}

        for record in iter_records(payload):
            try:
                tick = decode_tick_record(record, tz=self.tz)
                self.series.append(tick)
                controller_id = self.resolver.resolve(tick)
            except DecodeError as exc:
                logger.error(
                    "Rejecting malformed tick record",
                    extra={"record": record, "reason": str(exc), "processed_count": processed_count},
                )
                raise PipelineError(
                    f"malformed record after {processed_count} ticks: {exc}",
                    processed_count=processed_count,
                    record=record,
                ) from exc
            except StoreError as exc:
                logger.error(
                    "Store failure while ingesting tick",
                    extra={"record": record, "reason": str(exc), "processed_count": processed_count},
                )
                raise PipelineError(
                    f"store failure after {processed_count} ticks: {exc}",
                    processed_count=processed_count,
                    record=record,
                ) from exc

            logger.debug(
                "Stored tick",
                extra={"sensor_id": tick.sensor_id, "controller_id": controller_id},
            )
            processed_count += 1
            touched.setdefault(controller_id, set()).add(tick.sensor_id)
            tick_counts[controller_id] = tick_counts.get(controller_id, 0) + 1

        if touched:
            self._record_controller_readings(touched, tick_counts)
        return processed_count

    def _record_controller_readings(
        self, touched: Dict[str, Set[int]], tick_counts: Dict[str, int]
    ) -> None:
        received_at = self.clock()
        for controller_id, sensor_ids in touched.items():
            reading = ControllerReading(
                controller_id=controller_id,
                received_at=received_at,
                tick_count=tick_counts[controller_id],
                sensor_ids=sorted(sensor_ids),
            )
            try:
                self.series.append_controller_reading(reading)
            except StoreError as exc:
                raise PipelineError(
                    f"store failure recording batch summary: {exc}",
                    processed_count=sum(tick_counts.values()),
                    record="",
                ) from exc


def build_tick_timezone(name: Optional[str]) -> Optional[tzinfo]:
    return ZoneInfo(name) if name else None


@lru_cache
def build_default_pipeline(store: Optional[KeyValueStore] = None) -> IngestionPipeline:
    """Factory that wires the pipeline to the default store."""
    settings = get_settings()
    client = store if store is not None else build_default_store()
    series = TickSeriesStore(client)
    directory = DirectoryStore(client, series, view_url_template=settings.controller_view_url)
    resolver = AssociationResolver(directory, settings.default_controller_id)
    return IngestionPipeline(
        series=series,
        resolver=resolver,
        tz=build_tick_timezone(settings.tick_timezone),
    )
