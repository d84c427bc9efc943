"""Read-side service backing the HTTP query surface."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from app.schemas import (
    ControllerReadingView,
    ControllerView,
    CoordinatesView,
    PaginatedTicks,
    SensorView,
    TickView,
)
from datastore.directory import DirectoryStore
from datastore.oplog import OperationalLog
from datastore.timeseries import TickSeriesStore
from models.records import Controller, Tick
from services.codec import decode_battery_voltage, decode_signed_magnitude16
from settings import get_settings
from storage.base import KeyValueStore
from storage.redis_store import build_default_store


def _controller_view(controller: Controller) -> ControllerView:
    return ControllerView(
        id=controller.id, name=controller.label, token=controller.token, url=controller.url
    )


def project_tick(tick: Tick) -> TickView:
    """Attach decoded temperature and voltage to a stored tick."""
    return TickView(
        datetime=tick.timestamp,
        sensor_id=tick.sensor_id,
        next_data_session=tick.next_data_session,
        battery_voltage=tick.battery_voltage,
        sensor1=tick.sensor1,
        sensor2=tick.sensor2,
        radio_quality=tick.radio_quality,
        temperature=decode_signed_magnitude16(tick.sensor1),
        battery_voltage_visual=decode_battery_voltage(tick.battery_voltage),
    )


class QueryService:
    """Translates API requests into directory and tick series reads."""

    def __init__(
        self,
        series: TickSeriesStore,
        directory: DirectoryStore,
        oplog: OperationalLog,
    ) -> None:
        self.series = series
        self.directory = directory
        self.oplog = oplog

    def list_controllers(self) -> List[ControllerView]:
        return [_controller_view(controller) for controller in self.directory.list_controllers()]

    def get_controller(self, controller_id: str) -> ControllerView:
        controller = self.directory.get_controller(controller_id)
        if controller is None:
            raise KeyError(f"Controller {controller_id!r} not found.")
        return _controller_view(controller)

    def set_controller_label(self, controller_id: str, label: str) -> ControllerView:
        self.directory.set_controller_label(controller_id, label)
        return self.get_controller(controller_id)

    def list_sensors(self, controller_id: str) -> List[SensorView]:
        views = []
        for sensor in self.directory.list_sensors_of_controller(controller_id):
            coordinates = sensor.coordinates
            views.append(
                SensorView(
                    id=sensor.id,
                    controller_id=sensor.controller_id,
                    last_tick=sensor.last_tick,
                    lat=coordinates.lat if coordinates else None,
                    lng=coordinates.lng if coordinates else None,
                )
            )
        return views

    def set_sensor_coordinates(self, sensor_id: int, lat: str, lng: str) -> CoordinatesView:
        self.directory.set_sensor_coordinates(sensor_id, lat, lng)
        return CoordinatesView(lat=lat, lng=lng)

    def get_sensor_coordinates(self, sensor_id: int) -> CoordinatesView:
        coordinates = self.directory.get_sensor_coordinates(sensor_id)
        if coordinates is None:
            raise KeyError(f"Sensor {sensor_id} has no coordinates.")
        return CoordinatesView(lat=coordinates.lat, lng=coordinates.lng)

    def ticks_by_rank(
        self, sensor_id: int, start_index: int = 0, stop_index: Optional[int] = None
    ) -> PaginatedTicks:
        if stop_index is not None and stop_index < start_index:
            raise ValueError("stop_index must not be lower than start_index.")
        total = self.series.count(sensor_id)
        ticks = self.series.query_by_rank(sensor_id, start_index, stop_index)
        return PaginatedTicks(ticks=[project_tick(tick) for tick in ticks], total=total)

    def ticks_by_time_range(self, sensor_id: int, start: int, end: int) -> PaginatedTicks:
        if start > end:
            raise ValueError("start must not be later than end.")
        total = self.series.count(sensor_id)
        ticks = self.series.query_by_time_range(sensor_id, start, end)
        return PaginatedTicks(ticks=[project_tick(tick) for tick in ticks], total=total)

    def controller_readings(
        self, controller_id: str, start_index: int = 0, stop_index: Optional[int] = None
    ) -> List[ControllerReadingView]:
        readings = self.series.query_controller_readings(controller_id, start_index, stop_index)
        return [
            ControllerReadingView(
                controller_id=reading.controller_id,
                received_at=reading.received_at,
                tick_count=reading.tick_count,
                sensor_ids=reading.sensor_ids,
            )
            for reading in readings
        ]

    def recent_logs(self) -> List[str]:
        return self.oplog.recent()


@lru_cache
def build_default_query_service(store: Optional[KeyValueStore] = None) -> QueryService:
    settings = get_settings()
    client = store if store is not None else build_default_store()
    series = TickSeriesStore(client)
    directory = DirectoryStore(client, series, view_url_template=settings.controller_view_url)
    oplog = OperationalLog(client, max_entries=settings.operational_log_size)
    return QueryService(series=series, directory=directory, oplog=oplog)
