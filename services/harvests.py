"""Harvest log, summary statistics, CSV export and yield predictions."""

from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Iterable, List, Optional
from uuid import uuid4

from app.schemas import (
    HarvestCreate,
    HarvestRecord,
    HarvestStatus,
    HarvestSummary,
    HarvestUpdate,
    YieldPrediction,
    YieldPredictionCreate,
    patch_changes,
)
from datastore.documents import MockDocumentCollection, build_default_store
from settings import get_settings

logger = logging.getLogger(__name__)

ANY_GRADE = "All"
EXPORT_HEADERS = ("Date", "Batch ID", "Farmer", "Weight (kg)", "Quality", "Status")
_MISSING = "N/A"


def _format_weight(value: Optional[float]) -> str:
    if value is None:
        return _MISSING
    return f"{value:g}"


def export_csv(records: Iterable[HarvestRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for record in records:
        writer.writerow(
            [
                record.harvest_date.isoformat() if record.harvest_date else _MISSING,
                record.batch_id or _MISSING,
                record.farmer_name or _MISSING,
                _format_weight(record.weight_kg),
                record.quality or _MISSING,
                record.status.value if record.status else HarvestStatus.pending.value,
            ]
        )
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    current = today or datetime.now(timezone.utc).date()
    return f"harvest_logs_{current.isoformat()}.csv"


class HarvestLog:
    def __init__(
        self,
        harvests: MockDocumentCollection[HarvestRecord],
        predictions: MockDocumentCollection[YieldPrediction],
    ) -> None:
        self.harvests = harvests
        self.predictions_table = predictions

    def add(self, payload: HarvestCreate) -> HarvestRecord:
        record_id = str(uuid4())
        data = payload.model_dump()
        if not data["batch_id"]:
            data["batch_id"] = record_id
        record = HarvestRecord(id=record_id, **data)
        self.harvests.put_item(record)
        logger.info("Added harvest record", extra={"document_id": record.id})
        return record

    def get(self, record_id: str) -> HarvestRecord:
        record = self.harvests.get_item(record_id)
        if record is None:
            raise KeyError(f"Harvest record {record_id!r} not found.")
        return record

    def update(self, record_id: str, payload: HarvestUpdate) -> HarvestRecord:
        changes = patch_changes(payload, HarvestRecord)
        try:
            updated = self.harvests.update_item(
                record_id, lambda record: record.model_copy(update=changes)
            )
        except KeyError as exc:
            raise KeyError(f"Harvest record {record_id!r} not found.") from exc
        logger.info("Updated harvest record", extra={"document_id": record_id})
        return updated

    def delete(self, record_id: str) -> None:
        try:
            self.harvests.delete_item(record_id)
        except KeyError as exc:
            raise KeyError(f"Harvest record {record_id!r} not found.") from exc
        logger.info("Deleted harvest record", extra={"document_id": record_id})

    def list_harvests(self, search: Optional[str] = None, grade: Optional[str] = None) -> List[HarvestRecord]:
        """Records newest first, filtered by batch/farmer text and quality grade."""
        term = (search or "").strip().lower()
        wanted = (grade or "").strip()
        matched = []
        for record in self.harvests.scan():
            if term and term not in record.batch_id.lower() and term not in record.farmer_name.lower():
                continue
            if wanted and wanted != ANY_GRADE and record.quality != wanted:
                continue
            matched.append(record)
        return sorted(matched, key=lambda record: record.harvest_date or date.min, reverse=True)

    def grades(self) -> List[str]:
        return sorted({record.quality for record in self.harvests.scan() if record.quality})

    def summary(self) -> HarvestSummary:
        summary = HarvestSummary()
        for record in self.harvests.scan():
            weight = record.weight_kg or 0.0
            if record.status is HarvestStatus.dispatch:
                summary.total_dispatched += weight
            elif record.status is HarvestStatus.stored:
                summary.total_stored += weight
            else:
                continue
            summary.total_yield += weight
            summary.total_records += 1
        return summary

    def add_prediction(self, payload: YieldPredictionCreate) -> YieldPrediction:
        data = payload.model_dump()
        calculated_at = data["calculated_at"] or datetime.now(timezone.utc)
        if calculated_at.tzinfo is None:
            calculated_at = calculated_at.replace(tzinfo=timezone.utc)
        data["calculated_at"] = calculated_at
        prediction = YieldPrediction(id=str(uuid4()), **data)
        self.predictions_table.put_item(prediction)
        return prediction

    def predictions(self) -> List[YieldPrediction]:
        return sorted(
            self.predictions_table.scan(),
            key=lambda prediction: prediction.calculated_at,
            reverse=True,
        )


@lru_cache
def build_default_harvest_log() -> HarvestLog:
    settings = get_settings()
    store = build_default_store()
    return HarvestLog(
        harvests=store.collection(settings.harvests_collection, HarvestRecord),
        predictions=store.collection(settings.predictions_collection, YieldPrediction),
    )
