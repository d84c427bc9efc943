"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class ControllerView(BaseModel):
    """A controller as listed by the directory."""

    id: str
    name: str = Field(..., description="Label set by the operator, or the id when unset.")
    token: Optional[str] = None
    url: Optional[str] = Field(default=None, description="External view URL for the controller.")


class ControllerUpdate(BaseModel):
    """Payload accepted when labelling a controller."""

    label: Optional[str] = None
    name: Optional[str] = Field(default=None, description="Accepted as an alias of label.")

    def resolved_label(self) -> str:
        value = self.label if self.label is not None else self.name
        if value is None or not value.strip():
            raise ValueError("Controller label must not be empty.")
        return value.strip()


class CoordinatesView(BaseModel):
    lat: Optional[str] = None
    lng: Optional[str] = None


class SensorView(BaseModel):
    id: int
    controller_id: Optional[str] = None
    last_tick: Optional[dt.datetime] = None
    lat: Optional[str] = None
    lng: Optional[str] = None


class TickView(BaseModel):
    """Stored tick fields plus values decoded at read time."""

    datetime: dt.datetime
    sensor_id: int
    next_data_session: str
    battery_voltage: str = Field(..., description="Raw reading in millivolts.")
    sensor1: str = Field(..., description="Encoded temperature.")
    sensor2: str
    radio_quality: str = Field(..., description="Link quality indicator, 0..255.")
    temperature: float
    battery_voltage_visual: float = Field(..., description="Battery voltage in volts.")


class PaginatedTicks(BaseModel):
    ticks: List[TickView] = Field(default_factory=list)
    total: int = Field(..., ge=0)


class ControllerReadingView(BaseModel):
    controller_id: str
    received_at: dt.datetime
    tick_count: int = Field(..., ge=0)
    sensor_ids: List[int] = Field(default_factory=list)
