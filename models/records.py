"""Domain models shared across services."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def _parse_datetime(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(slots=True)
class Tick:
    """A single telemetry reading transmitted by a sensor device.

    The five reading fields are kept exactly as transmitted. Decoded values
    (temperature, battery volts) are derived at read time and never stored.
    """

    sensor_id: int
    timestamp: datetime
    next_data_session: str
    battery_voltage: str
    sensor1: str
    sensor2: str
    radio_quality: str
    controller_hint: Optional[str] = None

    def to_payload(self) -> str:
        """Serialize the persisted fields deterministically.

        Identical ticks must produce identical bytes so that re-appending a
        tick to a sorted set collapses into the existing member.
        """

        document = {
            "datetime": self.timestamp.isoformat(),
            "sensor_id": self.sensor_id,
            "next_data_session": self.next_data_session,
            "battery_voltage": self.battery_voltage,
            "sensor1": self.sensor1,
            "sensor2": self.sensor2,
            "radio_quality": self.radio_quality,
        }
        return json.dumps(document, sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_payload(cls, payload: str) -> "Tick":
        document: Dict[str, Any] = json.loads(payload)
        return cls(
            sensor_id=int(document["sensor_id"]),
            timestamp=_parse_datetime(document["datetime"]),
            next_data_session=document.get("next_data_session", ""),
            battery_voltage=document.get("battery_voltage", ""),
            sensor1=document.get("sensor1", ""),
            sensor2=document.get("sensor2", ""),
            radio_quality=document.get("radio_quality", ""),
        )


@dataclass(slots=True)
class Coordinates:
    lat: Optional[str] = None
    lng: Optional[str] = None


@dataclass(slots=True)
class Sensor:
    """A sensor as listed under a controller, joined with read-time data."""

    id: int
    controller_id: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    last_tick: Optional[datetime] = None


@dataclass(slots=True)
class Controller:
    """A coordinator device relaying readings for its member sensors."""

    id: str
    label: str
    token: Optional[str] = None
    url: Optional[str] = None


@dataclass(slots=True)
class ControllerReading:
    """Aggregate written once per controller for each ingested batch."""

    controller_id: str
    received_at: datetime
    tick_count: int
    sensor_ids: List[int] = field(default_factory=list)

    def to_payload(self) -> str:
        document = {
            "controller_id": self.controller_id,
            "received_at": self.received_at.isoformat(),
            "tick_count": self.tick_count,
            "sensor_ids": sorted(self.sensor_ids),
        }
        return json.dumps(document, sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_payload(cls, payload: str) -> "ControllerReading":
        document: Dict[str, Any] = json.loads(payload)
        return cls(
            controller_id=str(document["controller_id"]),
            received_at=_parse_datetime(document["received_at"]),
            tick_count=int(document["tick_count"]),
            sensor_ids=[int(value) for value in document.get("sensor_ids", [])],
        )
