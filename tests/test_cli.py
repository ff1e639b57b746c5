from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import typer
from typer.testing import CliRunner

from cli.app import app
from cli.config import load_config


def _assessment(level: str = "critical") -> Dict[str, Any]:
    item = {
        "level": level,
        "message": "Critical soil moisture: 10%",
        "recommendation": "Irrigate immediately",
        "confidence": 88,
        "prediction": None,
    }
    return {
        "reading": {"soil_moisture": 10.0, "temperature": 26.0, "humidity": 70.0, "timestamp": None},
        "report": {
            "soil": item,
            "temperature": {**item, "level": "optimal", "message": "Ideal temperature: 26°C"},
            "humidity": {**item, "level": "optimal", "message": "Ideal humidity: 70%"},
            "overall": {
                "level": level,
                "message": "Critical growing conditions - immediate action required",
                "confidence": 96,
            },
            "yield_impact": "Critical risk (-15%) - significant yield loss likely without action",
            "yield_impact_percent": -15,
            "fertilizer_advice": "Postpone fertilizer application - resolve critical conditions first",
            "fertilizer_timing": "postpone",
            "summary": "Critical soil moisture: 10% - attention required.",
        },
    }


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.evaluated: List[tuple[float, float, float]] = []
        self.pushed: List[Dict[str, Any]] = []
        self.wait_calls: List[tuple[Optional[str], float, float]] = []
        self.history_calls: List[str] = []
        self.export_calls: List[Dict[str, Optional[str]]] = []
        self.latest: Optional[Dict[str, Any]] = {"id": "reading-1"}
        self.closed = False

    def latest_assessment(self) -> Dict[str, Any]:
        return _assessment()

    def latest_recommendations(self) -> Dict[str, Any]:
        return {
            "recommendations": [
                {
                    "title": "Emergency Protocol",
                    "description": "Immediate intervention required for soil.",
                    "confidence": 91,
                    "priority": 3,
                    "level": "critical",
                }
            ]
        }

    def latest_reading(self) -> Optional[Dict[str, Any]]:
        return self.latest

    def evaluate(self, soil: float, temperature: float, humidity: float) -> Dict[str, Any]:
        self.evaluated.append((soil, temperature, humidity))
        return _assessment()

    def push_reading(self, soil, temperature, humidity, timestamp=None) -> Dict[str, Any]:
        self.pushed.append(
            {"soil": soil, "temperature": temperature, "humidity": humidity, "timestamp": timestamp}
        )
        return {"id": "reading-2"}

    def wait_for_new_reading(self, after_id, interval: float, timeout: float) -> Dict[str, Any]:
        self.wait_calls.append((after_id, interval, timeout))
        return {"id": "reading-2", "soil_moisture": 10.0, "temperature": 26.0, "humidity": 70.0}

    def history(self, timeframe: str) -> Dict[str, Any]:
        self.history_calls.append(timeframe)
        return {
            "timeframe": timeframe,
            "points": [
                {"label": "May 9", "soil_moisture": None, "temperature": None, "humidity": None},
                {"label": "May 10", "soil_moisture": 30.0, "temperature": 26.0, "humidity": 70.0},
            ],
        }

    def export_harvests(self, search=None, grade=None) -> str:
        self.export_calls.append({"search": search, "grade": grade})
        return "Date,Batch ID,Farmer,Weight (kg),Quality,Status\n2024-05-01,B-001,Maria,120,Grade A,Dispatch\n"

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_status_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "Assessment" in result.stdout
    assert "Critical growing conditions" in result.stdout
    assert "Irrigate immediately" in result.stdout
    assert "Recommendations" not in result.stdout
    assert stub.closed is True


def test_status_with_details(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["status", "--details"])

    assert result.exit_code == 0
    assert "Recommendations" in result.stdout
    assert "[3] Emergency Protocol (91%)" in result.stdout


def test_evaluate_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["evaluate", "10", "26", "70"])

    assert result.exit_code == 0
    assert stub.evaluated == [(10.0, 26.0, 70.0)]
    assert "Postpone fertilizer application" in result.stdout


def test_push_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["push", "30", "26", "70", "--timestamp", "2024-05-10T09:00:00Z"])

    assert result.exit_code == 0
    assert "Reading stored. id=reading-2" in result.stdout
    assert stub.pushed == [
        {"soil": 30.0, "temperature": 26.0, "humidity": 70.0, "timestamp": "2024-05-10T09:00:00Z"}
    ]


def test_watch_uses_overrides(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["watch", "--poll-interval", "0.5", "--timeout", "10"])

    assert result.exit_code == 0
    assert stub.wait_calls == [("reading-1", 0.5, 10.0)]
    assert "Reading" in result.stdout
    assert "Assessment" in result.stdout


def test_watch_without_previous_reading(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    stub.latest = None
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--poll-interval", "2", "--timeout", "30", "watch"])

    assert result.exit_code == 0
    assert stub.wait_calls == [(None, 2.0, 30.0)]


def test_history_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["history", "-t", "weeks"])

    assert result.exit_code == 0
    assert stub.history_calls == ["weeks"]
    assert "History (weeks)" in result.stdout
    assert "May 10" in result.stdout
    assert "May 9 " not in result.stdout


def test_export_harvests_command(monkeypatch, runner: CliRunner, tmp_path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    output = tmp_path / "harvests.csv"

    result = runner.invoke(app, ["export-harvests", str(output), "--grade", "Grade A"])

    assert result.exit_code == 0
    assert "Exported 1 harvest records" in result.stdout
    assert output.read_text().startswith("Date,Batch ID")
    assert stub.export_calls == [{"search": None, "grade": "Grade A"}]


def test_base_url_option_reaches_client(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--base-url", "http://farm.local:9000/", "status"])

    assert result.exit_code == 0
    assert stub.config.base_url == "http://farm.local:9000"


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://sensors:8080")
    monkeypatch.setenv("CLI_POLL_INTERVAL", "2.5")
    monkeypatch.setenv("CLI_POLL_TIMEOUT", "not-a-number")

    config = load_config()

    assert config.base_url == "http://sensors:8080"
    assert config.poll_interval == 2.5
    assert config.poll_timeout == 300.0


def test_wait_for_new_reading_times_out(monkeypatch) -> None:
    from cli.client import ApiClient

    client = ApiClient(load_config(base_url="http://localhost:1"))
    monkeypatch.setattr(client, "latest_reading", lambda: {"id": "reading-1"})
    monkeypatch.setattr("cli.client.time.sleep", lambda _seconds: None)

    try:
        with pytest.raises(typer.Exit):
            client.wait_for_new_reading("reading-1", interval=0.01, timeout=0.05)
    finally:
        client.close()


def test_sensor_cadence_defaults_and_non_positive_env(monkeypatch) -> None:
    from cli.config import CLIConfig

    monkeypatch.delenv("API_BASE_URL", raising=False)
    monkeypatch.setenv("CLI_POLL_INTERVAL", "0")
    monkeypatch.setenv("CLI_POLL_TIMEOUT", "-10")

    config = load_config(poll_timeout=30.0)

    assert config == CLIConfig(base_url="http://localhost:8000", poll_interval=5.0, poll_timeout=30.0)
