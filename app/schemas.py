"""Pydantic schemas for the HTTP API layer and stored documents."""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.classifier import FertilizerTiming, Level

_WEIGHT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)")


def parse_weight(value: Any) -> Optional[float]:
    """Accept numbers or text such as ``"120 kg"``; blank text means unknown."""
    if value is None or isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        if not value.strip():
            return None
        match = _WEIGHT_PATTERN.search(value)
        if match is None:
            raise ValueError(f"Could not read a weight from {value!r}")
        return float(match.group(1))
    return value


class FarmerRole(str, Enum):
    user = "user"
    admin = "admin"
    superadmin = "superadmin"


class FarmerStatus(str, Enum):
    active = "Active"
    inactive = "Inactive"


class HarvestStatus(str, Enum):
    dispatch = "Dispatch"
    stored = "Stored"
    pending = "Pending"


class ReadingCreate(BaseModel):
    """Sensor sample as submitted by a field device or a user."""

    soil_moisture: float = Field(..., description="Average soil moisture in percent.")
    temperature: float = Field(..., description="Air temperature in degrees Celsius.")
    humidity: float = Field(..., description="Relative humidity in percent.")
    timestamp: Optional[datetime] = None


class SensorDocument(BaseModel):
    """Stored sensor reading."""

    id: str
    soil_moisture: float
    temperature: float
    humidity: float
    timestamp: datetime


class ConditionAssessmentModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: Level
    message: str
    recommendation: str
    confidence: int = Field(..., ge=0, le=100)
    prediction: Optional[str] = None


class OverallAssessmentModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: Level
    message: str
    confidence: int = Field(..., ge=0, le=100)


class ConditionReportModel(BaseModel):
    """Classifier output for one reading."""

    model_config = ConfigDict(from_attributes=True)

    soil: ConditionAssessmentModel
    temperature: ConditionAssessmentModel
    humidity: ConditionAssessmentModel
    overall: OverallAssessmentModel
    yield_impact: str
    yield_impact_percent: int
    fertilizer_advice: str
    fertilizer_timing: FertilizerTiming
    summary: str


class AssessmentResponse(BaseModel):
    reading: ReadingCreate
    report: ConditionReportModel


class RecommendationModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    description: str
    confidence: int
    priority: int
    level: Optional[Level] = None


class RecommendationsResponse(BaseModel):
    reading: ReadingCreate
    overall: OverallAssessmentModel
    recommendations: List[RecommendationModel] = Field(default_factory=list)
    generated_at: datetime


class HistoryPointModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    soil_moisture: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None


class HistoryResponse(BaseModel):
    timeframe: str
    points: List[HistoryPointModel] = Field(default_factory=list)


class FarmerCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    middle_name: str = ""
    surname: str = Field(..., min_length=1)
    suffix: str = ""
    email: str = Field(..., min_length=3)
    phone_number: str = ""
    location: str = ""
    land_size: float = Field(default=0.0, ge=0, description="Land size in hectares.")


class FarmerUpdate(BaseModel):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    surname: Optional[str] = None
    suffix: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    location: Optional[str] = None
    land_size: Optional[float] = Field(default=None, ge=0)
    status: Optional[FarmerStatus] = None


class FarmerProfile(FarmerCreate):
    """Stored farmer account profile."""

    id: str
    role: FarmerRole = FarmerRole.user
    status: FarmerStatus = FarmerStatus.active
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname}".strip()


class FarmerStats(BaseModel):
    count: int = Field(..., ge=0)
    total_hectares: float = Field(..., ge=0)


class HarvestCreate(BaseModel):
    batch_id: str = ""
    farmer_name: str = ""
    harvest_date: Optional[date] = None
    weight_kg: Optional[float] = Field(default=None, ge=0)
    quality: str = ""
    status: HarvestStatus = HarvestStatus.pending
    inspector_notes: str = ""

    @field_validator("weight_kg", mode="before")
    @classmethod
    def _coerce_weight(cls, value: Any) -> Any:
        return parse_weight(value)


class HarvestUpdate(BaseModel):
    batch_id: Optional[str] = None
    farmer_name: Optional[str] = None
    harvest_date: Optional[date] = None
    weight_kg: Optional[float] = Field(default=None, ge=0)
    quality: Optional[str] = None
    status: Optional[HarvestStatus] = None
    inspector_notes: Optional[str] = None

    @field_validator("weight_kg", mode="before")
    @classmethod
    def _coerce_weight(cls, value: Any) -> Any:
        return parse_weight(value)


def patch_changes(payload: BaseModel, target: type[BaseModel]) -> Dict[str, Any]:
    """Fields a PATCH body explicitly sent, ready for ``model_copy(update=...)``.

    An explicit ``null`` clears a blank-able field back to its empty default
    ("" for text, ``None`` for optional values). Nulls sent for required or
    non-blank fields such as names, status or land size are ignored.
    """
    changes: Dict[str, Any] = {}
    for name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            changes[name] = value
            continue
        field = target.model_fields.get(name)
        if field is None or field.is_required():
            continue
        default = field.get_default(call_default_factory=True)
        if default is None or default == "":
            changes[name] = default
    return changes


class HarvestRecord(HarvestCreate):
    """Stored harvest log entry."""

    id: str


class HarvestSummary(BaseModel):
    total_dispatched: float = 0.0
    total_stored: float = 0.0
    total_yield: float = 0.0
    total_records: int = 0


class YieldPredictionCreate(BaseModel):
    predicted_next_day: float = 0.0
    predicted_1month: float = 0.0
    predicted_2months: float = 0.0
    predicted_3months: float = 0.0
    total_yield: float = 0.0
    calculated_at: Optional[datetime] = None


class YieldPrediction(YieldPredictionCreate):
    id: str
    calculated_at: datetime


ThresholdPayload = Dict[str, Dict[str, Dict[str, float]]]
