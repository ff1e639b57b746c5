from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from app.schemas import ReadingCreate, SensorDocument
from datastore.documents import MockDocumentCollection
from models.records import InvalidReading
from services.classifier import ConditionClassifier, Level
from services.monitoring import MonitoringService

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def monitor(tmp_path) -> MonitoringService:
    readings = MockDocumentCollection(
        name="dataCollectionSensor",
        model=SensorDocument,
        persistence_path=tmp_path / "dataCollectionSensor.json",
    )
    return MonitoringService(readings=readings, classifier=ConditionClassifier())


def _payload(soil: float = 30.0, temperature: float = 26.0, humidity: float = 70.0, timestamp=None) -> ReadingCreate:
    return ReadingCreate(soil_moisture=soil, temperature=temperature, humidity=humidity, timestamp=timestamp)


def test_record_reading_assigns_id_and_utc_timestamp(monitor: MonitoringService) -> None:
    document = monitor.record_reading(_payload(timestamp=datetime(2024, 5, 10, 9, 0)))

    assert document.id
    assert document.timestamp == datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)
    assert monitor.readings.get_item(document.id) == document


def test_record_reading_defaults_timestamp_to_now(monitor: MonitoringService) -> None:
    before = datetime.now(timezone.utc)
    document = monitor.record_reading(_payload())

    assert document.timestamp >= before
    assert document.timestamp.tzinfo is not None


def test_record_reading_rejects_non_finite_values(monitor: MonitoringService) -> None:
    with pytest.raises(InvalidReading):
        monitor.record_reading(_payload(humidity=math.nan))

    assert len(monitor.readings) == 0


def test_latest_document_requires_a_reading(monitor: MonitoringService) -> None:
    with pytest.raises(KeyError):
        monitor.latest_document()
    with pytest.raises(KeyError):
        monitor.evaluate_latest()


def test_evaluate_latest_uses_most_recent_timestamp(monitor: MonitoringService) -> None:
    monitor.record_reading(_payload(soil=10, timestamp=NOW))
    monitor.record_reading(_payload(soil=30, timestamp=NOW - timedelta(hours=1)))

    document, report = monitor.evaluate_latest()

    assert document.soil_moisture == 10
    assert report.overall.level is Level.critical


def test_recommendations_for_latest(monitor: MonitoringService) -> None:
    monitor.record_reading(_payload(soil=22, timestamp=NOW))

    document, report, recommendations = monitor.recommendations_for_latest(pick_insight=lambda options: options[-1])

    assert document.soil_moisture == 22
    assert report.overall.level is Level.warning
    assert recommendations[0].title == "Soil Management"
    assert recommendations[-1].title == "Research Insights"


def test_history_buckets_stored_readings(monitor: MonitoringService) -> None:
    monitor.record_reading(_payload(soil=31, timestamp=NOW.replace(hour=10, minute=4)))

    points = {point.label: point for point in monitor.history("days", now=NOW)}

    assert points["10:00"].soil_moisture == 31


def test_thresholds_exposes_classifier_configuration(monitor: MonitoringService) -> None:
    assert monitor.thresholds is monitor.classifier.thresholds
