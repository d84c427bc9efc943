"""Redis key layout shared with the existing deployments."""

from __future__ import annotations

from typing import Union

KEY_CONTROLLERS = "osp:controllers"
KEY_SENSOR_TO_CONTROLLER = "osp:sensor_to_controller"
KEY_LOGS = "osp:logs"

SensorKey = Union[int, str]


def controller_fields(controller_id: str) -> str:
    return f"osp:controller:{controller_id}:fields"


def controller_sensors(controller_id: str) -> str:
    return f"osp:controller:{controller_id}:sensors"


def controller_readings(controller_id: str) -> str:
    return f"osp:coordinator:{controller_id}:readings"


def sensor_fields(sensor_id: SensorKey) -> str:
    return f"osp:sensor:{sensor_id}:fields"


def sensor_ticks(sensor_id: SensorKey) -> str:
    return f"osp:sensor:{sensor_id}:ticks"
