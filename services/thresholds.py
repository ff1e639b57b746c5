"""Threshold bands used by the condition classifier."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from models.records import METRICS

logger = logging.getLogger(__name__)

_BAND_NAMES = ("optimal", "warning", "critical")


class InvalidThresholdConfiguration(ValueError):
    """Raised when threshold bands are malformed or not nested."""


@dataclass(frozen=True)
class Range:
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def covers(self, other: "Range") -> bool:
        return self.min <= other.min and other.max <= self.max

    def to_dict(self) -> Dict[str, float]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class ThresholdBand:
    """Optimal, warning and critical ranges for one metric."""

    optimal: Range
    warning: Range
    critical: Range

    def validate(self, metric: str) -> None:
        for name in _BAND_NAMES:
            band = getattr(self, name)
            if band.min > band.max:
                raise InvalidThresholdConfiguration(
                    f"{metric}.{name} has min {band.min} greater than max {band.max}"
                )
        if not self.warning.covers(self.optimal):
            raise InvalidThresholdConfiguration(
                f"{metric}.warning must contain {metric}.optimal"
            )
        if not self.critical.covers(self.warning):
            raise InvalidThresholdConfiguration(
                f"{metric}.critical must contain {metric}.warning"
            )

    @property
    def optimal_center(self) -> float:
        return (self.optimal.min + self.optimal.max) / 2

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {name: getattr(self, name).to_dict() for name in _BAND_NAMES}


@dataclass(frozen=True)
class ThresholdConfig:
    soil: ThresholdBand
    temperature: ThresholdBand
    humidity: ThresholdBand

    def __post_init__(self) -> None:
        for metric in METRICS:
            self.band_for(metric).validate(metric)

    def band_for(self, metric: str) -> ThresholdBand:
        if metric not in METRICS:
            raise KeyError(metric)
        return getattr(self, metric)

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, float]]]:
        return {metric: self.band_for(metric).to_dict() for metric in METRICS}


def _band(optimal: tuple[float, float], warning: tuple[float, float], critical: tuple[float, float]) -> ThresholdBand:
    return ThresholdBand(
        optimal=Range(*optimal),
        warning=Range(*warning),
        critical=Range(*critical),
    )


# Calamansi growing bands.
DEFAULT_THRESHOLDS = ThresholdConfig(
    soil=_band((25, 45), (20, 50), (15, 55)),
    temperature=_band((22, 30), (18, 33), (15, 36)),
    humidity=_band((60, 80), (50, 85), (40, 90)),
)


def _parse_range(metric: str, name: str, raw: Any) -> Range:
    if not isinstance(raw, Mapping):
        raise InvalidThresholdConfiguration(f"{metric}.{name} must be an object with min and max")
    try:
        low = raw["min"]
        high = raw["max"]
    except KeyError as exc:
        raise InvalidThresholdConfiguration(f"{metric}.{name} is missing {exc.args[0]!r}") from exc
    for bound in (low, high):
        if isinstance(bound, bool) or not isinstance(bound, (int, float)):
            raise InvalidThresholdConfiguration(f"{metric}.{name} bounds must be numbers")
    return Range(float(low), float(high))


def parse_thresholds(data: Mapping[str, Any], base: ThresholdConfig = DEFAULT_THRESHOLDS) -> ThresholdConfig:
    """Build a config from a mapping; metrics that are absent keep ``base`` values."""
    bands: Dict[str, ThresholdBand] = {}
    for metric in METRICS:
        raw_band = data.get(metric)
        if raw_band is None:
            bands[metric] = base.band_for(metric)
            continue
        if not isinstance(raw_band, Mapping):
            raise InvalidThresholdConfiguration(f"{metric} must be an object")
        bands[metric] = ThresholdBand(
            **{name: _parse_range(metric, name, raw_band.get(name)) for name in _BAND_NAMES}
        )
    return ThresholdConfig(**bands)


def load_thresholds(path: Optional[Path]) -> ThresholdConfig:
    if path is None:
        return DEFAULT_THRESHOLDS
    try:
        data = json.loads(path.read_text() or "{}")
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidThresholdConfiguration(f"Could not read thresholds from {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise InvalidThresholdConfiguration("Threshold file must contain a JSON object")
    config = parse_thresholds(data)
    logger.info("Loaded threshold configuration", extra={"reason": str(path)})
    return config
