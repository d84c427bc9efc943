"""Directory of controllers, their member sensors and sensor metadata."""

from __future__ import annotations

import logging
import secrets
from typing import List, Optional

from datastore import keys
from datastore.timeseries import TickSeriesStore
from models.records import Controller, Coordinates, Sensor
from storage.base import KeyValueStore

logger = logging.getLogger(__name__)

_LABEL_FIELD = "label"
_TOKEN_FIELD = "token"
_LAT_FIELD = "lat"
_LNG_FIELD = "lng"


class DirectoryStore:
    """Controller and sensor records kept alongside the tick series.

    Membership sets only grow: when a sensor moves to another controller it
    stays listed under the previous one as well. The sensor-to-controller
    hash always holds the most recent owner.
    """

    def __init__(
        self,
        store: KeyValueStore,
        series: TickSeriesStore,
        view_url_template: str = "{controller_id}/{token}",
    ) -> None:
        self.store = store
        self.series = series
        self.view_url_template = view_url_template

    def register_controller(self, controller_id: str) -> None:
        """Add ``controller_id`` to the known set, issuing an access token once."""
        if self.store.sadd(keys.KEY_CONTROLLERS, controller_id):
            logger.info("Registered controller", extra={"controller_id": controller_id})
        self.store.hsetnx(
            keys.controller_fields(controller_id), _TOKEN_FIELD, secrets.token_hex(8)
        )

    def set_controller_label(self, controller_id: str, label: str) -> None:
        self.register_controller(controller_id)
        self.store.hset(keys.controller_fields(controller_id), {_LABEL_FIELD: label})

    def get_controller(self, controller_id: str) -> Optional[Controller]:
        fields = self.store.hgetall(keys.controller_fields(controller_id))
        if not fields and not self.store.sismember(keys.KEY_CONTROLLERS, controller_id):
            return None
        return self._build_controller(controller_id, fields)

    def list_controllers(self) -> List[Controller]:
        controllers = []
        for controller_id in sorted(self.store.smembers(keys.KEY_CONTROLLERS)):
            fields = self.store.hgetall(keys.controller_fields(controller_id))
            controllers.append(self._build_controller(controller_id, fields))
        return controllers

    def register_sensor_under_controller(self, sensor_id: int, controller_id: str) -> None:
        """Point the sensor at ``controller_id`` and add it to that controller's members."""
        member = str(sensor_id)
        self.store.hset(keys.KEY_SENSOR_TO_CONTROLLER, {member: controller_id})
        self.store.sadd(keys.controller_sensors(controller_id), member)

    def get_sensor_controller(self, sensor_id: int) -> Optional[str]:
        controller_id = self.store.hget(keys.KEY_SENSOR_TO_CONTROLLER, str(sensor_id))
        return controller_id or None

    def set_sensor_coordinates(self, sensor_id: int, lat: str, lng: str) -> None:
        self.store.hset(keys.sensor_fields(sensor_id), {_LAT_FIELD: lat, _LNG_FIELD: lng})

    def get_sensor_coordinates(self, sensor_id: int) -> Optional[Coordinates]:
        lat, lng = self.store.hmget(keys.sensor_fields(sensor_id), [_LAT_FIELD, _LNG_FIELD])
        if lat is None and lng is None:
            return None
        return Coordinates(lat=lat, lng=lng)

    def list_sensors_of_controller(self, controller_id: str) -> List[Sensor]:
        """List member sensors joined with their coordinates and latest tick time."""
        sensor_ids = []
        for member in self.store.smembers(keys.controller_sensors(controller_id)):
            try:
                sensor_ids.append(int(member))
            except ValueError:
                logger.warning(
                    "Skipping non-numeric sensor member",
                    extra={"controller_id": controller_id, "sensor_id": member},
                )
        sensors: List[Sensor] = []
        for sensor_id in sorted(sensor_ids):
            latest = self.series.latest(sensor_id)
            sensors.append(
                Sensor(
                    id=sensor_id,
                    controller_id=controller_id,
                    coordinates=self.get_sensor_coordinates(sensor_id),
                    last_tick=latest.timestamp if latest is not None else None,
                )
            )
        return sensors

    def _build_controller(self, controller_id: str, fields: dict) -> Controller:
        token = fields.get(_TOKEN_FIELD)
        url = None
        if token:
            url = self.view_url_template.format(controller_id=controller_id, token=token)
        return Controller(
            id=controller_id,
            label=fields.get(_LABEL_FIELD) or controller_id,
            token=token,
            url=url,
        )
