"""Wire codec for sensor tick records and their encoded measurements."""

from __future__ import annotations

import re
from datetime import datetime, tzinfo
from typing import Optional, Union

from models.records import Tick

FIELD_SEPARATOR = ";"
RECORD_OPEN = "["
RECORD_CLOSE = "]"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_REQUIRED_FIELDS = 7
_SENSOR_ID_PATTERN = re.compile(r"[+-]?\d+")

# Bit position -> weight for the temperature magnitude. Bits 0..6 are unused.
_MAGNITUDE_WEIGHTS = (
    (7, 0.5),
    (8, 1.0),
    (9, 2.0),
    (10, 4.0),
    (11, 8.0),
    (12, 16.0),
    (13, 32.0),
    (14, 64.0),
)
_SIGN_BIT = 15


class DecodeError(ValueError):
    """A tick record or an encoded measurement could not be decoded."""


def _parse_int(raw: Union[int, str], what: str) -> int:
    if isinstance(raw, int):
        return raw
    candidate = raw.strip()
    if not _SENSOR_ID_PATTERN.fullmatch(candidate):
        raise DecodeError(f"invalid {what}: {raw!r}")
    return int(candidate)


def _parse_timestamp(raw: str, tz: Optional[tzinfo]) -> datetime:
    try:
        parsed = datetime.strptime(raw.strip(), TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise DecodeError(f"invalid timestamp: {raw!r}") from exc
    if tz is None:
        # Naive values are interpreted in the process-local zone.
        return parsed.astimezone()
    return parsed.replace(tzinfo=tz)


def decode_tick_record(raw: str, tz: Optional[tzinfo] = None) -> Tick:
    """Decode one ``[timestamp;sensor;next;battery;s1;s2;radio(;controller)]`` record."""
    contents = raw.strip()
    if contents.startswith(RECORD_OPEN):
        contents = contents[1:]
    if contents.endswith(RECORD_CLOSE):
        contents = contents[:-1]

    parts = contents.split(FIELD_SEPARATOR)
    if len(parts) < _REQUIRED_FIELDS:
        raise DecodeError(
            f"expected at least {_REQUIRED_FIELDS} fields, got {len(parts)}: {raw!r}"
        )

    timestamp = _parse_timestamp(parts[0], tz)
    sensor_id = _parse_int(parts[1], "sensor id")
    hint = parts[7].strip() if len(parts) > _REQUIRED_FIELDS else ""

    return Tick(
        sensor_id=sensor_id,
        timestamp=timestamp,
        next_data_session=parts[2],
        battery_voltage=parts[3],
        sensor1=parts[4],
        sensor2=parts[5],
        radio_quality=parts[6],
        controller_hint=hint or None,
    )


def encode_tick_record(tick: Tick) -> str:
    """Render a tick in wire format, the inverse of :func:`decode_tick_record`."""
    stamp = tick.timestamp
    fields = [
        f"{stamp.year}-{stamp.month}-{stamp.day} {stamp.hour}:{stamp.minute}:{stamp.second}",
        str(tick.sensor_id),
        tick.next_data_session,
        tick.battery_voltage,
        tick.sensor1,
        tick.sensor2,
        tick.radio_quality,
    ]
    if tick.controller_hint:
        fields.append(tick.controller_hint)
    return RECORD_OPEN + FIELD_SEPARATOR.join(fields) + RECORD_CLOSE


def tick_rank(tick: Tick) -> int:
    """Ordering key of a tick within its sensor's series: epoch seconds."""
    return int(tick.timestamp.timestamp())


def decode_signed_magnitude16(raw: Union[int, str]) -> float:
    """Decode the sign-and-magnitude temperature carried in ``sensor1``."""
    value = _parse_int(raw, "encoded measurement")
    magnitude = 0.0
    for bit, weight in _MAGNITUDE_WEIGHTS:
        if value & (1 << bit):
            magnitude += weight
    if value & (1 << _SIGN_BIT):
        return -magnitude
    return magnitude


def decode_battery_voltage(raw: Union[int, str]) -> float:
    """Convert a millivolt reading into volts."""
    return _parse_int(raw, "battery voltage") / 1000.0
