"""Rule-based classification of soil, temperature and humidity readings."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from models.records import METRICS, Reading, require_number
from services.thresholds import DEFAULT_THRESHOLDS, ThresholdBand, ThresholdConfig


class Level(str, Enum):
    optimal = "optimal"
    warning = "warning"
    critical = "critical"


class FertilizerTiming(str, Enum):
    postpone = "postpone"
    caution = "caution"
    apply = "apply"


@dataclass(frozen=True)
class MetricProfile:
    """Display text and scoring factors for one metric."""

    label: str
    unit: str
    confidence_factor: float
    optimal_boost: float
    critical_low: str
    critical_high: str
    warning_low: str
    warning_high: str
    optimal: str
    monitor: str
    critical_prediction: str
    warning_prediction: str
    optimal_prediction: str


METRIC_PROFILES: Dict[str, MetricProfile] = {
    "soil": MetricProfile(
        label="Soil moisture",
        unit="%",
        confidence_factor=2.5,
        optimal_boost=1.2,
        critical_low="Irrigate immediately - high risk of plant stress and fruit drop within hours",
        critical_high="Reduce watering immediately - waterlogged soil risks root rot",
        warning_low="Increase irrigation frequency",
        warning_high="Adjust watering schedule to improve root aeration",
        optimal="Maintain current irrigation schedule",
        monitor="Monitor soil moisture closely",
        critical_prediction="Without intervention, conditions will deteriorate within 4-6 hours",
        warning_prediction="Trending toward the critical zone within 8-12 hours",
        optimal_prediction="Current conditions support near-maximum yield potential",
    ),
    "temperature": MetricProfile(
        label="Temperature",
        unit="°C",
        confidence_factor=2.0,
        optimal_boost=1.15,
        critical_low="Protect from cold immediately - activate heating or cover plants",
        critical_high="Provide immediate cooling - deploy shade or cooling systems",
        warning_low="Prepare warming measures; raising temperature by 2-3°C would favour growth",
        warning_high="Prepare cooling measures; lowering temperature by 1-2°C would favour photosynthesis",
        optimal="Maintain current conditions - temperature is ideal for growth",
        monitor="Monitor temperature variations",
        critical_prediction="Without intervention, heat or cold stress will increase within 3-5 hours",
        warning_prediction="Trending toward the critical zone within 6-10 hours",
        optimal_prediction="Current conditions support peak photosynthetic efficiency",
    ),
    "humidity": MetricProfile(
        label="Humidity",
        unit="%",
        confidence_factor=2.2,
        optimal_boost=1.18,
        critical_low="Increase humidity now - activate misting systems",
        critical_high="Ventilate immediately - high humidity favours disease outbreaks",
        warning_low="Raise humidity by 8-12% for healthy transpiration",
        warning_high="Improve ventilation to lower humidity by 5-8%",
        optimal="Maintain current conditions - humidity supports healthy fruit development",
        monitor="Monitor humidity levels",
        critical_prediction="Without action, water stress or fungal infection becomes likely within 4-6 hours",
        warning_prediction="Trending toward the critical zone within 7-12 hours",
        optimal_prediction="Current conditions optimise nutrient uptake and fruit quality",
    ),
}

OVERALL_MESSAGES = {
    "critical": "Critical growing conditions - immediate action required",
    "multiple_warnings": "Suboptimal growing conditions - monitor conditions closely",
    "single_warning": "Minor condition deviation - minor adjustments needed",
    "optimal": "Optimal growing conditions",
}

CRITICAL_IMPACT_STEP = 15
CRITICAL_IMPACT_CAP = 30
WARNING_IMPACT_STEP = 5
WARNING_IMPACT_CAP = 15
OPTIMAL_BOOST_CAP = 15


@dataclass(frozen=True)
class ConditionAssessment:
    level: Level
    message: str
    recommendation: str
    confidence: int
    prediction: Optional[str] = None


@dataclass(frozen=True)
class OverallAssessment:
    level: Level
    message: str
    confidence: int


@dataclass(frozen=True)
class ConditionReport:
    """Everything the dashboard shows for a single reading."""

    soil: ConditionAssessment
    temperature: ConditionAssessment
    humidity: ConditionAssessment
    overall: OverallAssessment
    yield_impact: str
    yield_impact_percent: int
    fertilizer_advice: str
    fertilizer_timing: FertilizerTiming
    summary: str

    def metrics(self) -> Dict[str, ConditionAssessment]:
        return {metric: getattr(self, metric) for metric in METRICS}

    def count(self, level: Level) -> int:
        return sum(1 for assessment in self.metrics().values() if assessment.level is level)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _format_value(value: float, unit: str) -> str:
    return f"{value:g}{unit}"


def _edge_confidence(value: float, band: ThresholdBand, factor: float) -> int:
    proximity = min(abs(value - band.critical.min), abs(value - band.critical.max))
    return max(0, min(100, round_half_up(100 - proximity * factor)))


def _optimal_confidence(value: float, band: ThresholdBand, boost: float) -> int:
    base = max(70.0, 100 - abs(value - band.optimal_center) * 2)
    return min(100, round_half_up(base * boost))


def classify_metric(metric: str, value: Any, band: ThresholdBand) -> ConditionAssessment:
    """Classify one metric value against its band.

    Checks run critical, then warning, then optimal; a value that lies inside
    the warning range but outside the optimal range matches none of them and
    gets a generic warning.
    """
    profile = METRIC_PROFILES[metric]
    number = require_number(metric, value)
    shown = _format_value(number, profile.unit)
    label = profile.label.lower()
    confidence = _edge_confidence(number, band, profile.confidence_factor)

    if not band.critical.contains(number):
        below = number < band.critical.min
        return ConditionAssessment(
            level=Level.critical,
            message=f"Critical {label}: {shown}",
            recommendation=profile.critical_low if below else profile.critical_high,
            confidence=confidence,
            prediction=profile.critical_prediction,
        )
    if not band.warning.contains(number):
        below = number < band.warning.min
        return ConditionAssessment(
            level=Level.warning,
            message=f"Suboptimal {label}: {shown}",
            recommendation=profile.warning_low if below else profile.warning_high,
            confidence=confidence,
            prediction=profile.warning_prediction,
        )
    if band.optimal.contains(number):
        return ConditionAssessment(
            level=Level.optimal,
            message=f"Ideal {label}: {shown}",
            recommendation=profile.optimal,
            confidence=_optimal_confidence(number, band, profile.optimal_boost),
            prediction=profile.optimal_prediction,
        )
    return ConditionAssessment(
        level=Level.warning,
        message=f"{profile.label} outside optimal range: {shown}",
        recommendation=profile.monitor,
        confidence=confidence,
    )


def assess_overall(assessments: Iterable[ConditionAssessment]) -> OverallAssessment:
    items = list(assessments)
    critical = sum(1 for item in items if item.level is Level.critical)
    warning = sum(1 for item in items if item.level is Level.warning)
    confidence = round_half_up(sum(item.confidence for item in items) / len(items)) if items else 0

    if critical > 0:
        return OverallAssessment(Level.critical, OVERALL_MESSAGES["critical"], confidence)
    if warning > 1:
        return OverallAssessment(Level.warning, OVERALL_MESSAGES["multiple_warnings"], confidence)
    if warning == 1:
        return OverallAssessment(Level.warning, OVERALL_MESSAGES["single_warning"], confidence)
    return OverallAssessment(Level.optimal, OVERALL_MESSAGES["optimal"], confidence)


def yield_impact_percent(critical_count: int, warning_count: int, confidence: int) -> int:
    if critical_count > 0:
        return -min(CRITICAL_IMPACT_CAP, critical_count * CRITICAL_IMPACT_STEP)
    if warning_count > 0:
        return -min(WARNING_IMPACT_CAP, warning_count * WARNING_IMPACT_STEP)
    return min(OPTIMAL_BOOST_CAP, round_half_up(confidence / 10))


def describe_yield_impact(percent: int, critical_count: int) -> str:
    if critical_count > 0:
        return f"Critical risk ({percent}%) - significant yield loss likely without action"
    if percent < 0:
        return f"Moderate risk ({percent}%) - some yield reduction expected"
    return f"Optimal conditions (+{percent}%) - conditions favour maximum fruit retention"


def fertilizer_timing(critical_count: int, warning_count: int) -> FertilizerTiming:
    if critical_count > 0:
        return FertilizerTiming.postpone
    if warning_count > 0:
        return FertilizerTiming.caution
    return FertilizerTiming.apply


FERTILIZER_ADVICE = {
    FertilizerTiming.postpone: "Postpone fertilizer application - resolve critical conditions first",
    FertilizerTiming.caution: "Proceed with caution - make minor adjustments before applying nutrients",
    FertilizerTiming.apply: "Safe to apply scheduled nutrients - conditions favour absorption",
}


def summarize(assessments: Iterable[ConditionAssessment]) -> str:
    issues: List[str] = [item.message for item in assessments if item.level is not Level.optimal]
    if not issues:
        return "All parameters optimal. Conditions are ideal for maximum yield potential."
    if len(issues) == 1:
        return f"{issues[0]} - attention required."
    return f"{'; '.join(issues)} - multiple factors need attention."


class ConditionClassifier:
    """Stateless classifier bound to one threshold configuration."""

    def __init__(self, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> None:
        self.thresholds = thresholds

    def evaluate(self, reading: Reading) -> ConditionReport:
        assessments = {
            metric: classify_metric(metric, reading.value_for(metric), self.thresholds.band_for(metric))
            for metric in METRICS
        }
        overall = assess_overall(assessments.values())
        critical = sum(1 for item in assessments.values() if item.level is Level.critical)
        warning = sum(1 for item in assessments.values() if item.level is Level.warning)
        percent = yield_impact_percent(critical, warning, overall.confidence)
        timing = fertilizer_timing(critical, warning)

        return ConditionReport(
            soil=assessments["soil"],
            temperature=assessments["temperature"],
            humidity=assessments["humidity"],
            overall=overall,
            yield_impact=describe_yield_impact(percent, critical),
            yield_impact_percent=percent,
            fertilizer_advice=FERTILIZER_ADVICE[timing],
            fertilizer_timing=timing,
            summary=summarize(assessments.values()),
        )


def evaluate(reading: Reading, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> ConditionReport:
    return ConditionClassifier(thresholds).evaluate(reading)
