from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_controllers, render_sensors, render_ticks


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for sending ticks to and querying the sensor tick service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Query API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    upload_host: Optional[str] = typer.Option(
        None,
        "--upload-host",
        help="Host of the tick upload port (defaults to UPLOAD_HOST env or 127.0.0.1).",
    ),
    upload_port: Optional[int] = typer.Option(
        None,
        "--upload-port",
        "-p",
        help="Tick upload port (defaults to UPLOAD_PORT env or 8090).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Network timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        upload_host=upload_host,
        upload_port=upload_port,
        timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="File of tick records."),
) -> None:
    """Transmit a file of tick records to the upload port, as a controller would."""
    state = _get_state(ctx)
    typer.echo(f"Sending {file} to {state.config.upload_host}:{state.config.upload_port} ...")
    sent = state.client.send_ticks(file)
    typer.secho(f"Transmission complete. bytes={sent}", fg=typer.colors.GREEN)


@app.command("controllers")
def controllers_command(ctx: typer.Context) -> None:
    """List known controllers."""
    state = _get_state(ctx)
    render_controllers(state.client.list_controllers())


@app.command("sensors")
def sensors_command(
    ctx: typer.Context,
    controller_id: str = typer.Argument(..., help="Controller identifier."),
) -> None:
    """List sensors of a controller with their last tick time."""
    state = _get_state(ctx)
    render_sensors(controller_id, state.client.list_sensors(controller_id))


@app.command("label")
def label_command(
    ctx: typer.Context,
    controller_id: str = typer.Argument(..., help="Controller identifier."),
    label: str = typer.Argument(..., help="New label."),
) -> None:
    """Set the label of a controller."""
    state = _get_state(ctx)
    controller = state.client.set_label(controller_id, label)
    typer.secho(f"Controller {controller.get('id')} is now {controller.get('name')!r}.", fg=typer.colors.GREEN)


@app.command("ticks")
def ticks_command(
    ctx: typer.Context,
    sensor_id: int = typer.Argument(..., help="Sensor identifier."),
    start_index: Optional[int] = typer.Option(None, "--start-index", min=0, help="Newest-first start position."),
    stop_index: Optional[int] = typer.Option(None, "--stop-index", min=0, help="Inclusive stop position."),
    start: Optional[int] = typer.Option(None, "--start", help="Time range start, epoch seconds."),
    end: Optional[int] = typer.Option(None, "--end", help="Time range end, epoch seconds."),
) -> None:
    """Show a page of ticks for a sensor with decoded values."""
    if (start is None) != (end is None):
        raise typer.BadParameter("--start and --end must be given together.")
    state = _get_state(ctx)
    page = state.client.get_ticks(
        sensor_id, start_index=start_index, stop_index=stop_index, start=start, end=end
    )
    render_ticks(sensor_id, page)


@app.command("logs")
def logs_command(ctx: typer.Context) -> None:
    """Print the most recent raw transmissions."""
    state = _get_state(ctx)
    typer.echo(state.client.get_logs())
