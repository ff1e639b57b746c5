"""Detailed recommendation list built from a condition report."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from services.classifier import ConditionReport, Level, round_half_up

METRIC_TITLES = {
    "soil": "Soil Management",
    "temperature": "Temperature Control",
    "humidity": "Humidity Management",
}

RESEARCH_INSIGHTS = (
    "nutrient supplementation protocols",
    "microclimate optimization strategies",
    "stress-resistant cultivation methods",
    "timing-based harvesting approaches",
    "environmental adaptation techniques",
    "growth enhancement procedures",
)

DEFAULT_CONFIDENCE = 85


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str
    confidence: int
    priority: int
    level: Optional[Level] = None


def trend_description(report: ConditionReport) -> str:
    critical = report.count(Level.critical)
    warning = report.count(Level.warning)
    if critical > 0:
        return "deteriorating"
    if warning > 1:
        return "unstable"
    if warning == 1:
        return "slightly unstable"
    return "stable"


def _scaled(confidence: int, factor: float) -> int:
    return min(100, round_half_up(confidence * factor))


def build_recommendations(
    report: ConditionReport,
    pick_insight: Callable[[Sequence[str]], str] = random.choice,
) -> List[Recommendation]:
    """Return recommendations ordered from most to least urgent."""
    confidence = report.overall.confidence or DEFAULT_CONFIDENCE
    recommendations: List[Recommendation] = []

    for metric, assessment in report.metrics().items():
        if assessment.level is Level.optimal:
            continue
        recommendations.append(
            Recommendation(
                title=METRIC_TITLES[metric],
                description=assessment.recommendation,
                confidence=assessment.confidence or DEFAULT_CONFIDENCE,
                priority=1 if assessment.level is Level.critical else 2,
                level=assessment.level,
            )
        )

    critical = [metric for metric, item in report.metrics().items() if item.level is Level.critical]
    if critical:
        recommendations.append(
            Recommendation(
                title="Emergency Protocol",
                description=(
                    f"Immediate intervention required for {', '.join(critical)}. "
                    "Follow the recommendations within 1-2 hours."
                ),
                confidence=_scaled(confidence, 0.95),
                priority=3,
                level=Level.critical,
            )
        )

    if report.count(Level.warning) > 0:
        hours = max(4, round_half_up(confidence / 10))
        recommendations.append(
            Recommendation(
                title="Preventive Timeline",
                description=f"Issues may develop within {hours} hours. Begin preventive measures now.",
                confidence=_scaled(confidence, 0.85),
                priority=2,
                level=Level.warning,
            )
        )

    recommendations.append(
        Recommendation(
            title="Trend Analysis",
            description=(
                f"Current conditions show a {trend_description(report)} pattern. "
                "Keep watching readings over the next 24 hours."
            ),
            confidence=_scaled(confidence, 0.9),
            priority=1,
        )
    )

    improvement = max(0, min(15, confidence - 85))
    if improvement > 0:
        recommendations.append(
            Recommendation(
                title="Yield Optimization",
                description=(
                    f"Up to {improvement}% yield improvement is possible with precise adjustments."
                ),
                confidence=confidence,
                priority=1,
            )
        )
    else:
        recommendations.append(
            Recommendation(
                title="Growth Monitoring",
                description="Current conditions support healthy growth. Monitor for optimal harvest timing.",
                confidence=confidence,
                priority=1,
            )
        )

    recommendations.append(
        Recommendation(
            title="Research Insights",
            description=(
                f"Calamansi cultivation data suggests {pick_insight(RESEARCH_INSIGHTS)} "
                "for enhanced productivity."
            ),
            confidence=90,
            priority=0,
        )
    )

    recommendations.sort(key=lambda item: item.priority, reverse=True)
    return recommendations
