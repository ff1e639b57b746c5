"""Bucketing of stored readings into chart timelines."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models.records import Reading

TIMEFRAMES = ("days", "weeks", "months")
DEFAULT_TIMEFRAME = "days"

_DAY_START = (8, 0)
_DAY_END = (20, 50)
_HOUR_STEP = timedelta(minutes=10)
_DAY_STEP = timedelta(days=1)


def load_timezone(name: Optional[str]) -> tzinfo:
    """Resolve an IANA zone name such as ``Asia/Manila``; blank or ``UTC`` means UTC."""
    candidate = (name or "").strip()
    if not candidate or candidate.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone {candidate!r}") from exc


@dataclass
class HistoryPoint:
    """One chart bucket; values stay ``None`` when no reading landed in it."""

    label: str
    soil_moisture: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None


@dataclass(frozen=True)
class TimelineWindow:
    """``start`` and ``end`` are the starts of the first and last buckets."""

    start: datetime
    end: datetime
    step: timedelta

    @property
    def hourly(self) -> bool:
        return self.step < _DAY_STEP

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end + self.step


def normalize_timeframe(timeframe: Optional[str]) -> str:
    candidate = (timeframe or "").strip().lower()
    return candidate if candidate in TIMEFRAMES else DEFAULT_TIMEFRAME


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def window_for(timeframe: Optional[str], now: datetime) -> TimelineWindow:
    resolved = normalize_timeframe(timeframe)
    if resolved in ("weeks", "months"):
        days = 7 if resolved == "weeks" else 30
        today = _midnight(now)
        return TimelineWindow(start=today - timedelta(days=days), end=today, step=_DAY_STEP)
    start = now.replace(hour=_DAY_START[0], minute=_DAY_START[1], second=0, microsecond=0)
    end = now.replace(hour=_DAY_END[0], minute=_DAY_END[1], second=0, microsecond=0)
    return TimelineWindow(start=start, end=end, step=_HOUR_STEP)


def label_for(moment: datetime, hourly: bool) -> str:
    if hourly:
        floored = moment.replace(minute=moment.minute - moment.minute % 10, second=0, microsecond=0)
        return floored.strftime("%H:%M")
    return f"{moment:%b} {moment.day}"


class TimelineBuilder:
    """Pure timeline component that can be unit tested in isolation.

    Day boundaries and the 08:00-20:50 range are taken in ``zone``, the
    farm's local time.
    """

    def __init__(self, zone: tzinfo = timezone.utc) -> None:
        self.zone = zone

    def build(
        self,
        readings: Iterable[Reading],
        timeframe: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[HistoryPoint]:
        current = now or datetime.now(self.zone)
        if current.tzinfo is not None:
            current = current.astimezone(self.zone)
        window = window_for(timeframe, current)

        points: Dict[str, HistoryPoint] = {}
        cursor = window.start
        while cursor <= window.end:
            label = label_for(cursor, window.hourly)
            points.setdefault(label, HistoryPoint(label=label))
            cursor += window.step

        timestamped = [
            (self._align(reading.timestamp, current), reading)
            for reading in readings
            if reading.timestamp is not None
        ]
        for moment, reading in sorted(timestamped, key=lambda item: item[0]):
            if not window.contains(moment):
                continue
            point = points.get(label_for(moment, window.hourly))
            if point is None:
                continue
            point.soil_moisture = reading.soil
            point.temperature = reading.temperature
            point.humidity = reading.humidity

        return list(points.values())

    @staticmethod
    def _align(moment: datetime, reference: datetime) -> datetime:
        if reference.tzinfo is None:
            return moment.astimezone(timezone.utc).replace(tzinfo=None) if moment.tzinfo else moment
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(reference.tzinfo)
