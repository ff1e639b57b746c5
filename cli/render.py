from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

_LEVEL_COLORS = {
    "optimal": typer.colors.GREEN,
    "warning": typer.colors.YELLOW,
    "critical": typer.colors.RED,
}

_METRICS = (
    ("soil", "soil_moisture", "%"),
    ("temperature", "temperature", "°C"),
    ("humidity", "humidity", "%"),
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def echo_level(level: str, text: str) -> None:
    typer.secho(text, fg=_LEVEL_COLORS.get(level))


def render_reading(reading: Dict[str, Any]) -> None:
    echo_heading("Reading")
    pairs = [(name, f"{reading.get(field)}{unit}") for name, field, unit in _METRICS]
    if reading.get("timestamp"):
        pairs.append(("timestamp", reading.get("timestamp")))
    echo_key_values(pairs)


def render_assessment(payload: Dict[str, Any]) -> None:
    render_reading(payload.get("reading") or {})

    report = payload.get("report") or {}
    overall = report.get("overall") or {}
    typer.echo()
    echo_heading("Assessment")
    echo_level(overall.get("level", ""), f"overall: {overall.get('level')} - {overall.get('message')}")
    for name, _field, _unit in _METRICS:
        item = report.get(name) or {}
        echo_level(item.get("level", ""), f"  - {name}: {item.get('level')} - {item.get('message')}")
        typer.echo(f"      {item.get('recommendation')}")

    typer.echo()
    echo_key_values(
        [
            ("summary", report.get("summary")),
            ("yield_impact", report.get("yield_impact")),
            ("fertilizer", report.get("fertilizer_advice")),
        ]
    )


def render_recommendations(payload: Dict[str, Any]) -> None:
    typer.echo()
    echo_heading("Recommendations")
    items = payload.get("recommendations") or []
    if not items:
        typer.echo("No recommendations available.")
        return
    for item in items:
        echo_level(
            item.get("level") or "",
            f"  - [{item.get('priority')}] {item.get('title')} ({item.get('confidence')}%)",
        )
        typer.echo(f"      {item.get('description')}")


def render_history(payload: Dict[str, Any]) -> None:
    echo_heading(f"History ({payload.get('timeframe')})")
    points = [
        point
        for point in payload.get("points") or []
        if any(point.get(field) is not None for _name, field, _unit in _METRICS)
    ]
    if not points:
        typer.echo("No readings in this timeframe.")
        return
    typer.echo("label     soil  temp  humidity")
    for point in points:
        typer.echo(
            f"{point.get('label'):<9} {_cell(point.get('soil_moisture'))} "
            f"{_cell(point.get('temperature'))} {_cell(point.get('humidity'))}"
        )


def _cell(value: Any) -> str:
    return f"{value:>5}" if value is not None else "   --"
