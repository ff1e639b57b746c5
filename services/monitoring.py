"""Sensor reading ingestion, evaluation and history."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple
from uuid import uuid4

from app.schemas import ReadingCreate, SensorDocument
from datastore.documents import MockDocumentCollection, build_default_store
from models.records import Reading
from services.advisor import Recommendation, build_recommendations
from services.classifier import ConditionClassifier, ConditionReport
from services.history import HistoryPoint, TimelineBuilder, load_timezone, normalize_timeframe
from services.thresholds import ThresholdConfig, load_thresholds
from settings import get_settings

logger = logging.getLogger(__name__)


def to_reading(document: SensorDocument) -> Reading:
    return Reading.from_values(
        soil=document.soil_moisture,
        temperature=document.temperature,
        humidity=document.humidity,
        timestamp=document.timestamp,
    )


def to_payload(document: SensorDocument) -> ReadingCreate:
    return ReadingCreate(
        soil_moisture=document.soil_moisture,
        temperature=document.temperature,
        humidity=document.humidity,
        timestamp=document.timestamp,
    )


class MonitoringService:
    """Coordinates reading storage with the condition classifier."""

    def __init__(
        self,
        readings: MockDocumentCollection[SensorDocument],
        classifier: ConditionClassifier,
        timeline: Optional[TimelineBuilder] = None,
    ) -> None:
        self.readings = readings
        self.classifier = classifier
        self.timeline = timeline or TimelineBuilder()

    @property
    def thresholds(self) -> ThresholdConfig:
        return self.classifier.thresholds

    def record_reading(self, payload: ReadingCreate) -> SensorDocument:
        """Validate and store a reading; raises ``InvalidReading`` on bad values."""
        reading = Reading.from_values(
            soil=payload.soil_moisture,
            temperature=payload.temperature,
            humidity=payload.humidity,
        )
        document = SensorDocument(
            id=str(uuid4()),
            soil_moisture=reading.soil,
            temperature=reading.temperature,
            humidity=reading.humidity,
            timestamp=self._normalize_timestamp(payload.timestamp),
        )
        self.readings.put_item(document)
        logger.info(
            "Recorded sensor reading",
            extra={"reading_id": document.id, "collection": self.readings.name},
        )
        return document

    def latest_document(self) -> SensorDocument:
        documents = self.readings.scan()
        if not documents:
            raise KeyError("No sensor readings have been recorded yet.")
        return max(documents, key=lambda document: document.timestamp)

    def evaluate(self, reading: Reading) -> ConditionReport:
        report = self.classifier.evaluate(reading)
        logger.debug("Evaluated reading", extra={"level": report.overall.level.value})
        return report

    def evaluate_latest(self) -> Tuple[SensorDocument, ConditionReport]:
        document = self.latest_document()
        report = self.evaluate(to_reading(document))
        logger.info(
            "Evaluated latest reading",
            extra={"reading_id": document.id, "level": report.overall.level.value},
        )
        return document, report

    def recommendations_for_latest(
        self,
        pick_insight: Callable[[Sequence[str]], str] = random.choice,
    ) -> Tuple[SensorDocument, ConditionReport, List[Recommendation]]:
        document, report = self.evaluate_latest()
        return document, report, build_recommendations(report, pick_insight=pick_insight)

    def history(self, timeframe: Optional[str] = None, now: Optional[datetime] = None) -> List[HistoryPoint]:
        resolved = normalize_timeframe(timeframe)
        readings = [to_reading(document) for document in self.readings.scan()]
        current = now or datetime.now(self.timeline.zone)
        points = self.timeline.build(readings, timeframe=resolved, now=current)
        logger.debug(
            "Built reading history",
            extra={"timeframe": resolved, "record_count": len(readings)},
        )
        return points

    @staticmethod
    def _normalize_timestamp(value: Optional[datetime]) -> datetime:
        if value is None:
            return datetime.now(timezone.utc)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


@lru_cache
def build_default_monitor() -> MonitoringService:
    """Factory that wires the monitor with the default store and thresholds."""
    settings = get_settings()
    store = build_default_store()
    thresholds_path = Path(settings.thresholds_path) if settings.thresholds_path else None
    classifier = ConditionClassifier(load_thresholds(thresholds_path))
    readings = store.collection(settings.readings_collection, SensorDocument)
    timeline = TimelineBuilder(zone=load_timezone(settings.farm_timezone))
    return MonitoringService(readings=readings, classifier=classifier, timeline=timeline)
