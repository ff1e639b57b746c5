from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the farm monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=30.0)

    def close(self) -> None:
        self._client.close()

    def latest_assessment(self) -> Dict[str, Any]:
        return self._get_json("/assessments/latest", missing="No sensor readings recorded yet.")

    def latest_recommendations(self) -> Dict[str, Any]:
        return self._get_json(
            "/assessments/latest/recommendations",
            missing="No sensor readings recorded yet.",
        )

    def latest_reading(self) -> Optional[Dict[str, Any]]:
        try:
            response = self._client.get("/readings/latest")
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def evaluate(self, soil: float, temperature: float, humidity: float) -> Dict[str, Any]:
        return self._post_json(
            "/assessments",
            {"soil_moisture": soil, "temperature": temperature, "humidity": humidity},
        )

    def push_reading(
        self,
        soil: float,
        temperature: float,
        humidity: float,
        timestamp: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "soil_moisture": soil,
            "temperature": temperature,
            "humidity": humidity,
        }
        if timestamp:
            body["timestamp"] = timestamp
        return self._post_json("/readings", body)

    def history(self, timeframe: str) -> Dict[str, Any]:
        try:
            response = self._client.get("/readings/history", params={"timeframe": timeframe})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def export_harvests(self, search: Optional[str] = None, grade: Optional[str] = None) -> str:
        params = {key: value for key, value in {"search": search, "grade": grade}.items() if value}
        try:
            response = self._client.get("/harvests/export", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.text

    def wait_for_new_reading(self, after_id: Optional[str], interval: float, timeout: float) -> Dict[str, Any]:
        """Poll until a reading other than ``after_id`` is the latest one."""
        deadline = time.monotonic() + timeout
        while time.monotonic() <= deadline:
            reading = self.latest_reading()
            if reading is not None and reading.get("id") != after_id:
                return reading
            time.sleep(interval)
        typer.secho(
            f"Timed out after {timeout}s waiting for a new sensor reading.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    def _get_json(self, path: str, missing: str) -> Dict[str, Any]:
        try:
            response = self._client.get(path)
            if response.status_code == 404:
                raise typer.BadParameter(missing)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def _post_json(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post(path, json=body)
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
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
