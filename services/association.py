"""Learn which controller owns each sensor."""

from __future__ import annotations

import logging

from datastore.directory import DirectoryStore
from models.records import Tick

logger = logging.getLogger(__name__)


class AssociationResolver:
    """Resolve a tick's controller and write the result back to the directory.

    Precedence: the controller hint carried by the tick, then the stored
    association, then the configured default controller.
    """

    def __init__(self, directory: DirectoryStore, default_controller_id: str) -> None:
        self.directory = directory
        self.default_controller_id = default_controller_id

    def resolve(self, tick: Tick) -> str:
        controller_id = (tick.controller_hint or "").strip()
        if not controller_id:
            controller_id = self.directory.get_sensor_controller(tick.sensor_id) or ""
        if not controller_id:
            logger.warning(
                "Controller unknown for sensor, assigning default controller",
                extra={"sensor_id": tick.sensor_id, "controller_id": self.default_controller_id},
            )
            controller_id = self.default_controller_id

        self.directory.register_controller(controller_id)
        self.directory.register_sensor_under_controller(tick.sensor_id, controller_id)
        return controller_id
