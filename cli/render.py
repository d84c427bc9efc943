from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_controllers(controllers: List[Dict[str, Any]]) -> None:
    echo_heading("Controllers")
    if not controllers:
        typer.echo("No controllers registered.")
        return
    for controller in controllers:
        typer.echo(f"  - {controller.get('id')}: {controller.get('name')}")
        if controller.get("url"):
            typer.echo(f"    {controller['url']}")


def render_sensors(controller_id: str, sensors: List[Dict[str, Any]]) -> None:
    echo_heading(f"Sensors of controller {controller_id}")
    if not sensors:
        typer.echo("No sensors recorded.")
        return
    for sensor in sensors:
        location = ""
        if sensor.get("lat") or sensor.get("lng"):
            location = f" at {sensor.get('lat')},{sensor.get('lng')}"
        typer.echo(
            f"  - {sensor.get('id')}: last tick {sensor.get('last_tick') or 'never'}{location}"
        )


def render_ticks(sensor_id: int, page: Dict[str, Any]) -> None:
    ticks = page.get("ticks") or []
    echo_heading(f"Ticks of sensor {sensor_id}")
    echo_key_values([("total", page.get("total")), ("shown", len(ticks))])
    if not ticks:
        return
    typer.echo()
    for tick in ticks:
        typer.echo(
            f"  - {tick.get('datetime')}: {tick.get('temperature')} C, "
            f"{tick.get('battery_voltage_visual')} V, radio {tick.get('radio_quality')}"
        )
