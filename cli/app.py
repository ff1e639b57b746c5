from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_assessment, render_history, render_reading, render_recommendations


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the farm monitor service.",
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
        help="Farm monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between checks when watching for new readings.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Maximum seconds to wait for a new reading.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        poll_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("status")
def status_command(
    ctx: typer.Context,
    details: bool = typer.Option(
        False,
        "--details/--no-details",
        help="Also list detailed recommendations.",
    ),
) -> None:
    """Show the assessment of the latest sensor reading."""
    state = _get_state(ctx)
    render_assessment(state.client.latest_assessment())
    if details:
        render_recommendations(state.client.latest_recommendations())


@app.command("evaluate")
def evaluate_command(
    ctx: typer.Context,
    soil: float = typer.Argument(..., help="Soil moisture in percent."),
    temperature: float = typer.Argument(..., help="Temperature in degrees Celsius."),
    humidity: float = typer.Argument(..., help="Relative humidity in percent."),
) -> None:
    """Evaluate a reading without storing it."""
    state = _get_state(ctx)
    render_assessment(state.client.evaluate(soil, temperature, humidity))


@app.command("push")
def push_command(
    ctx: typer.Context,
    soil: float = typer.Argument(..., help="Soil moisture in percent."),
    temperature: float = typer.Argument(..., help="Temperature in degrees Celsius."),
    humidity: float = typer.Argument(..., help="Relative humidity in percent."),
    timestamp: Optional[str] = typer.Option(
        None,
        "--timestamp",
        help="ISO-8601 time of the sample (defaults to now on the server).",
    ),
) -> None:
    """Store a sensor reading."""
    state = _get_state(ctx)
    document = state.client.push_reading(soil, temperature, humidity, timestamp=timestamp)
    typer.secho(f"Reading stored. id={document.get('id')}", fg=typer.colors.GREEN)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Override poll interval while waiting.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Override timeout while waiting.",
    ),
) -> None:
    """Wait for the next sensor reading and show its assessment."""
    state = _get_state(ctx)
    interval = poll_interval if poll_interval is not None else state.config.poll_interval
    poll_timeout = timeout if timeout is not None else state.config.poll_timeout

    current = state.client.latest_reading()
    after_id = current.get("id") if current else None
    typer.echo(f"Waiting for a new reading (interval={interval}s, timeout={poll_timeout}s)...")
    reading = state.client.wait_for_new_reading(after_id, interval=interval, timeout=poll_timeout)
    typer.echo()
    render_reading(reading)
    typer.echo()
    render_assessment(state.client.latest_assessment())


@app.command("history")
def history_command(
    ctx: typer.Context,
    timeframe: str = typer.Option("days", "--timeframe", "-t", help="days, weeks or months."),
) -> None:
    """Print the bucketed reading history."""
    state = _get_state(ctx)
    render_history(state.client.history(timeframe))


@app.command("export-harvests")
def export_harvests_command(
    ctx: typer.Context,
    output: Path = typer.Argument(..., dir_okay=False, writable=True, help="Destination CSV path."),
    search: Optional[str] = typer.Option(None, "--search", help="Filter by batch id or farmer name."),
    grade: Optional[str] = typer.Option(None, "--grade", help="Filter by quality grade."),
) -> None:
    """Download harvest records as CSV."""
    state = _get_state(ctx)
    content = state.client.export_harvests(search=search, grade=grade)
    output.write_text(content, encoding="utf-8")
    rows = max(0, len(content.strip().splitlines()) - 1)
    typer.secho(f"Exported {rows} harvest records to {output}", fg=typer.colors.GREEN)
