from __future__ import annotations

import socket
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig

END_OF_TRANSMISSION = b"\r\n"


class ApiClient:
    """HTTP client for the query API plus a raw TCP sender for tick files."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def list_controllers(self) -> List[Dict[str, Any]]:
        return self._get_json("/api/controllers")

    def list_sensors(self, controller_id: str) -> List[Dict[str, Any]]:
        return self._get_json(f"/api/controllers/{controller_id}/sensors")

    def set_label(self, controller_id: str, label: str) -> Dict[str, Any]:
        try:
            response = self._client.put(f"/api/controllers/{controller_id}", json={"label": label})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def get_ticks(
        self,
        sensor_id: int,
        start_index: Optional[int] = None,
        stop_index: Optional[int] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> Dict[str, Any]:
        params = {
            name: value
            for name, value in (
                ("start_index", start_index),
                ("stop_index", stop_index),
                ("start", start),
                ("end", end),
            )
            if value is not None
        }
        return self._get_json(f"/api/sensors/{sensor_id}/ticks", params=params)

    def get_logs(self) -> str:
        try:
            response = self._client.get("/api/logs")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.text

    def send_ticks(self, path: Path) -> int:
        """Stream a tick file to the upload port; return the number of bytes sent."""
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")
        payload = path.read_bytes()
        address = (self._config.upload_host, self._config.upload_port)
        try:
            with socket.create_connection(address, timeout=self._config.timeout) as conn:
                conn.sendall(payload)
                conn.sendall(END_OF_TRANSMISSION)
                conn.shutdown(socket.SHUT_WR)
                # The server sends no acknowledgement; wait for it to hang up.
                while conn.recv(256):
                    pass
        except OSError as exc:
            typer.secho(
                f"Could not deliver ticks to {address[0]}:{address[1]}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1)
        return len(payload)

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._client.get(url, params=params)
            if response.status_code == 404:
                raise typer.BadParameter(f"{url} was not found.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
