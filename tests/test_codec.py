"""Unit tests for the tick wire codec."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from services.codec import (
    DecodeError,
    decode_battery_voltage,
    decode_signed_magnitude16,
    decode_tick_record,
    encode_tick_record,
    tick_rank,
)


def test_decode_tick_record_keeps_raw_fields() -> None:
    tick = decode_tick_record("[2024-1-1 10:0:0;42;60;3300;200;0;255]", tz=timezone.utc)

    assert tick.sensor_id == 42
    assert tick.timestamp == datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
    assert tick.next_data_session == "60"
    assert tick.battery_voltage == "3300"
    assert tick.sensor1 == "200"
    assert tick.sensor2 == "0"
    assert tick.radio_quality == "255"
    assert tick.controller_hint is None


def test_decode_tick_record_reads_controller_hint() -> None:
    tick = decode_tick_record("[2024-12-31 23:59:59;7;60;3300;200;0;255;ctrl-9]", tz=timezone.utc)

    assert tick.controller_hint == "ctrl-9"
    assert tick.timestamp == datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def test_decode_tick_record_treats_blank_hint_as_missing() -> None:
    tick = decode_tick_record("[2024-1-1 10:0:0;7;60;3300;200;0;255;]", tz=timezone.utc)

    assert tick.controller_hint is None


def test_decode_tick_record_uses_local_zone_by_default() -> None:
    tick = decode_tick_record("[2024-6-1 8:30:5;1;60;3300;200;0;255]")

    assert tick.timestamp.tzinfo is not None
    assert tick.timestamp.replace(tzinfo=None) == datetime(2024, 6, 1, 8, 30, 5)


@pytest.mark.parametrize(
    "raw",
    [
        "[bad-record]",
        "[2024-1-1 10:0:0;42;60;3300;200;0]",
        "[2024-13-1 10:0:0;42;60;3300;200;0;255]",
        "[yesterday;42;60;3300;200;0;255]",
        "[2024-1-1 10:0:0;sensor;60;3300;200;0;255]",
        "[2024-1-1 10:0:0;;60;3300;200;0;255]",
    ],
)
def test_decode_tick_record_rejects_malformed_records(raw: str) -> None:
    with pytest.raises(DecodeError):
        decode_tick_record(raw, tz=timezone.utc)


def test_encode_tick_record_reverses_decoding() -> None:
    raw = "[2024-3-9 7:5:0;42;60;3300;200;0;255;5]"

    tick = decode_tick_record(raw, tz=timezone.utc)

    assert encode_tick_record(tick) == raw


def test_tick_rank_is_epoch_seconds() -> None:
    tick = decode_tick_record("[1970-1-1 0:1:40;1;60;3300;200;0;255]", tz=timezone.utc)

    assert tick_rank(tick) == 100


def test_signed_magnitude_single_low_bit() -> None:
    assert decode_signed_magnitude16(1 << 7) == 0.5


def test_signed_magnitude_all_bits_negative() -> None:
    raw = sum(1 << bit for bit in range(7, 16))

    assert decode_signed_magnitude16(raw) == -127.5


def test_signed_magnitude_ignores_low_bits() -> None:
    assert decode_signed_magnitude16(0b1111111) == 0.0
    assert decode_signed_magnitude16((1 << 8) | 0b1010101) == 1.0


@pytest.mark.parametrize(
    ("bit", "weight"),
    [(7, 0.5), (8, 1), (9, 2), (10, 4), (11, 8), (12, 16), (13, 32), (14, 64)],
)
def test_signed_magnitude_bit_weights(bit: int, weight: float) -> None:
    assert decode_signed_magnitude16(1 << bit) == weight
    assert decode_signed_magnitude16((1 << bit) | (1 << 15)) == -weight


def test_signed_magnitude_accepts_decimal_text() -> None:
    assert decode_signed_magnitude16("5888") == 23.0


def test_signed_magnitude_rejects_non_integer_text() -> None:
    with pytest.raises(DecodeError):
        decode_signed_magnitude16("12.5")


def test_battery_voltage_in_volts() -> None:
    assert decode_battery_voltage("3300") == 3.3
    assert decode_battery_voltage(2950) == 2.95


def test_battery_voltage_rejects_text() -> None:
    with pytest.raises(DecodeError):
        decode_battery_voltage("abc")
