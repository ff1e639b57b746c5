"""Domain models shared across services."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


METRICS = ("soil", "temperature", "humidity")


class InvalidReading(ValueError):
    """Raised when a sensor value is missing or not a finite number."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f"Invalid {field} value: {value!r}")
        self.field = field
        self.value = value


def require_number(field: str, value: Any) -> float:
    # bool is an int subclass but never a sensor value
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidReading(field, value)
    number = float(value)
    if not math.isfinite(number):
        raise InvalidReading(field, value)
    return number


@dataclass(frozen=True, slots=True)
class Reading:
    """A single soil moisture / temperature / humidity sample."""

    soil: float
    temperature: float
    humidity: float
    timestamp: Optional[datetime] = None

    @classmethod
    def from_values(
        cls,
        soil: Any,
        temperature: Any,
        humidity: Any,
        timestamp: Optional[datetime] = None,
    ) -> "Reading":
        return cls(
            soil=require_number("soil", soil),
            temperature=require_number("temperature", temperature),
            humidity=require_number("humidity", humidity),
            timestamp=timestamp,
        )

    def value_for(self, metric: str) -> float:
        if metric not in METRICS:
            raise KeyError(metric)
        return getattr(self, metric)
