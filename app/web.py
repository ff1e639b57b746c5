from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from models.records import InvalidReading
from services.advisor import build_recommendations
from services.farmers import ANY_LOCATION, FarmerRegistry, build_default_registry
from services.harvests import ANY_GRADE, HarvestLog, build_default_harvest_log
from services.history import TIMEFRAMES, normalize_timeframe
from services.monitoring import MonitoringService, build_default_monitor


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

# Seconds between automatic dashboard refreshes.
DASHBOARD_REFRESH_SECONDS = 30


def get_monitor() -> MonitoringService:
    return build_default_monitor()


def get_registry() -> FarmerRegistry:
    return build_default_registry()


def get_harvest_log() -> HarvestLog:
    return build_default_harvest_log()


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_dashboard", response_class=HTMLResponse)
async def ui_dashboard(
    request: Request,
    timeframe: Optional[str] = None,
    details: bool = False,
    monitor: MonitoringService = Depends(get_monitor),
) -> HTMLResponse:
    resolved = normalize_timeframe(timeframe)
    reading = None
    report = None
    recommendations = []
    error = None
    try:
        reading, report = monitor.evaluate_latest()
    except KeyError:
        reading = None
    except InvalidReading as exc:
        error = str(exc)
    if report is not None and details:
        recommendations = build_recommendations(report)

    history = [asdict(point) for point in monitor.history(resolved)]
    return templates.TemplateResponse(
        request,
        "ui/dashboard.html",
        {
            "reading": reading,
            "report": report,
            "recommendations": recommendations,
            "details": details,
            "error": error,
            "history": history,
            "timeframe": resolved,
            "timeframes": TIMEFRAMES,
            "refresh_seconds": DASHBOARD_REFRESH_SECONDS,
        },
    )


@router.get("/ui/farmers", name="ui_farmers", response_class=HTMLResponse)
async def ui_farmers(
    request: Request,
    search: Optional[str] = None,
    location: Optional[str] = None,
    registry: FarmerRegistry = Depends(get_registry),
) -> HTMLResponse:
    farmers = registry.list_farmers(search=search, location=location)
    return templates.TemplateResponse(
        request,
        "ui/farmers.html",
        {
            "farmers": farmers,
            "stats": registry.stats(registry.farmers()),
            "locations": registry.locations(),
            "search": search or "",
            "location": location or ANY_LOCATION,
            "any_location": ANY_LOCATION,
            "is_filtered": bool(search) or (location not in (None, "", ANY_LOCATION)),
        },
    )


@router.get("/ui/harvests", name="ui_harvests", response_class=HTMLResponse)
async def ui_harvests(
    request: Request,
    search: Optional[str] = None,
    grade: Optional[str] = None,
    harvest_log: HarvestLog = Depends(get_harvest_log),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "ui/harvests.html",
        {
            "harvests": harvest_log.list_harvests(search=search, grade=grade),
            "summary": harvest_log.summary(),
            "predictions": harvest_log.predictions(),
            "grades": harvest_log.grades(),
            "search": search or "",
            "grade": grade or ANY_GRADE,
            "any_grade": ANY_GRADE,
        },
    )
