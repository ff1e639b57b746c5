"""HTTP route definitions for the service."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.schemas import (
    AssessmentResponse,
    ConditionReportModel,
    FarmerCreate,
    FarmerProfile,
    FarmerStats,
    FarmerUpdate,
    HarvestCreate,
    HarvestRecord,
    HarvestSummary,
    HarvestUpdate,
    HistoryPointModel,
    HistoryResponse,
    OverallAssessmentModel,
    ReadingCreate,
    RecommendationModel,
    RecommendationsResponse,
    SensorDocument,
    ThresholdPayload,
    YieldPrediction,
    YieldPredictionCreate,
)
from models.records import InvalidReading, Reading
from services.farmers import FarmerRegistry, build_default_registry
from services.harvests import HarvestLog, build_default_harvest_log, export_csv, export_filename
from services.history import normalize_timeframe
from services.monitoring import MonitoringService, build_default_monitor, to_payload

router = APIRouter()


def get_monitor() -> MonitoringService:
    return build_default_monitor()


def get_registry() -> FarmerRegistry:
    return build_default_registry()


def get_harvest_log() -> HarvestLog:
    return build_default_harvest_log()


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0]))


def _invalid(exc: InvalidReading) -> HTTPException:
    return HTTPException(status_code=422, detail=str(exc))


@router.get(
    "/thresholds",
    response_model=ThresholdPayload,
    summary="Active optimal, warning and critical bands per metric.",
)
async def get_thresholds(monitor: MonitoringService = Depends(get_monitor)) -> ThresholdPayload:
    return monitor.thresholds.to_dict()


@router.post(
    "/readings",
    status_code=status.HTTP_201_CREATED,
    response_model=SensorDocument,
    summary="Store a sensor reading.",
)
async def create_reading(
    payload: ReadingCreate,
    monitor: MonitoringService = Depends(get_monitor),
) -> SensorDocument:
    try:
        return monitor.record_reading(payload)
    except InvalidReading as exc:
        raise _invalid(exc) from exc


@router.get(
    "/readings/latest",
    response_model=SensorDocument,
    summary="Most recent sensor reading.",
)
async def latest_reading(monitor: MonitoringService = Depends(get_monitor)) -> SensorDocument:
    try:
        return monitor.latest_document()
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.get(
    "/readings/history",
    response_model=HistoryResponse,
    summary="Readings bucketed into a chart timeline.",
)
async def reading_history(
    timeframe: str = Query("days", description="One of days, weeks or months."),
    monitor: MonitoringService = Depends(get_monitor),
) -> HistoryResponse:
    resolved = normalize_timeframe(timeframe)
    points = monitor.history(resolved)
    return HistoryResponse(
        timeframe=resolved,
        points=[HistoryPointModel.model_validate(asdict(point)) for point in points],
    )


@router.post(
    "/assessments",
    response_model=AssessmentResponse,
    summary="Evaluate an ad-hoc reading without storing it.",
)
async def assess_reading(
    payload: ReadingCreate,
    monitor: MonitoringService = Depends(get_monitor),
) -> AssessmentResponse:
    try:
        reading = Reading.from_values(
            soil=payload.soil_moisture,
            temperature=payload.temperature,
            humidity=payload.humidity,
            timestamp=payload.timestamp,
        )
        report = monitor.evaluate(reading)
    except InvalidReading as exc:
        raise _invalid(exc) from exc
    return AssessmentResponse(reading=payload, report=ConditionReportModel.model_validate(report.to_dict()))


@router.get(
    "/assessments/latest",
    response_model=AssessmentResponse,
    summary="Evaluate the most recent stored reading.",
)
async def assess_latest(monitor: MonitoringService = Depends(get_monitor)) -> AssessmentResponse:
    try:
        document, report = monitor.evaluate_latest()
    except KeyError as exc:
        raise _not_found(exc) from exc
    except InvalidReading as exc:
        raise _invalid(exc) from exc
    return AssessmentResponse(
        reading=to_payload(document),
        report=ConditionReportModel.model_validate(report.to_dict()),
    )


@router.get(
    "/assessments/latest/recommendations",
    response_model=RecommendationsResponse,
    summary="Detailed, prioritised recommendations for the latest reading.",
)
async def latest_recommendations(
    monitor: MonitoringService = Depends(get_monitor),
) -> RecommendationsResponse:
    try:
        document, report, recommendations = monitor.recommendations_for_latest()
    except KeyError as exc:
        raise _not_found(exc) from exc
    except InvalidReading as exc:
        raise _invalid(exc) from exc
    return RecommendationsResponse(
        reading=to_payload(document),
        overall=OverallAssessmentModel.model_validate(asdict(report.overall)),
        recommendations=[RecommendationModel.model_validate(asdict(item)) for item in recommendations],
        generated_at=datetime.now(timezone.utc),
    )


@router.get("/farmers", response_model=List[FarmerProfile], summary="List farmers.")
async def list_farmers(
    search: Optional[str] = Query(None, description="Case-insensitive match on full name."),
    location: Optional[str] = Query(None, description="Exact location, or All."),
    registry: FarmerRegistry = Depends(get_registry),
) -> List[FarmerProfile]:
    return registry.list_farmers(search=search, location=location)


@router.post(
    "/farmers",
    status_code=status.HTTP_201_CREATED,
    response_model=FarmerProfile,
    summary="Register a farmer.",
)
async def register_farmer(
    payload: FarmerCreate,
    registry: FarmerRegistry = Depends(get_registry),
) -> FarmerProfile:
    return registry.register(payload)


@router.get("/farmers/stats", response_model=FarmerStats, summary="Farmer count and land area.")
async def farmer_stats(registry: FarmerRegistry = Depends(get_registry)) -> FarmerStats:
    return registry.stats(registry.farmers())


@router.get("/farmers/{farmer_id}", response_model=FarmerProfile, summary="Fetch a farmer profile.")
async def get_farmer(
    farmer_id: str,
    registry: FarmerRegistry = Depends(get_registry),
) -> FarmerProfile:
    try:
        return registry.get(farmer_id)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.patch("/farmers/{farmer_id}", response_model=FarmerProfile, summary="Update a farmer profile.")
async def update_farmer(
    farmer_id: str,
    payload: FarmerUpdate,
    registry: FarmerRegistry = Depends(get_registry),
) -> FarmerProfile:
    try:
        return registry.update(farmer_id, payload)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.get("/harvests", response_model=List[HarvestRecord], summary="List harvest records.")
async def list_harvests(
    search: Optional[str] = Query(None, description="Match on batch id or farmer name."),
    grade: Optional[str] = Query(None, description="Quality grade, or All."),
    harvest_log: HarvestLog = Depends(get_harvest_log),
) -> List[HarvestRecord]:
    return harvest_log.list_harvests(search=search, grade=grade)


@router.post(
    "/harvests",
    status_code=status.HTTP_201_CREATED,
    response_model=HarvestRecord,
    summary="Add a harvest record.",
)
async def add_harvest(
    payload: HarvestCreate,
    harvest_log: HarvestLog = Depends(get_harvest_log),
) -> HarvestRecord:
    return harvest_log.add(payload)


@router.get("/harvests/summary", response_model=HarvestSummary, summary="Dispatched and stored totals.")
async def harvest_summary(harvest_log: HarvestLog = Depends(get_harvest_log)) -> HarvestSummary:
    return harvest_log.summary()


@router.get("/harvests/export", summary="Download filtered harvest records as CSV.")
async def export_harvests(
    search: Optional[str] = Query(None),
    grade: Optional[str] = Query(None),
    harvest_log: HarvestLog = Depends(get_harvest_log),
) -> Response:
    records = harvest_log.list_harvests(search=search, grade=grade)
    return Response(
        content=export_csv(records),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/harvests/{record_id}", response_model=HarvestRecord, summary="Fetch a harvest record.")
async def get_harvest(
    record_id: str,
    harvest_log: HarvestLog = Depends(get_harvest_log),
) -> HarvestRecord:
    try:
        return harvest_log.get(record_id)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.patch("/harvests/{record_id}", response_model=HarvestRecord, summary="Update a harvest record.")
async def update_harvest(
    record_id: str,
    payload: HarvestUpdate,
    harvest_log: HarvestLog = Depends(get_harvest_log),
) -> HarvestRecord:
    try:
        return harvest_log.update(record_id, payload)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.delete(
    "/harvests/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a harvest record.",
)
async def delete_harvest(
    record_id: str,
    harvest_log: HarvestLog = Depends(get_harvest_log),
) -> Response:
    try:
        harvest_log.delete(record_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/predictions", response_model=List[YieldPrediction], summary="Yield predictions, newest first.")
async def list_predictions(harvest_log: HarvestLog = Depends(get_harvest_log)) -> List[YieldPrediction]:
    return harvest_log.predictions()


@router.post(
    "/predictions",
    status_code=status.HTTP_201_CREATED,
    response_model=YieldPrediction,
    summary="Record a yield prediction.",
)
async def add_prediction(
    payload: YieldPredictionCreate,
    harvest_log: HarvestLog = Depends(get_harvest_log),
) -> YieldPrediction:
    return harvest_log.add_prediction(payload)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status and /ui for the dashboard."}
