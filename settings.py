from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_ROOT_ENV = "FARM_STORE_ROOT_PATH"
_THRESHOLDS_PATH_ENV = "FARM_THRESHOLDS_PATH"
_READINGS_COLLECTION_ENV = "FARM_READINGS_COLLECTION"
_FARMERS_COLLECTION_ENV = "FARM_FARMERS_COLLECTION"
_HARVESTS_COLLECTION_ENV = "FARM_HARVESTS_COLLECTION"
_PREDICTIONS_COLLECTION_ENV = "FARM_PREDICTIONS_COLLECTION"
_TIMEZONE_ENV = "FARM_TIMEZONE"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    store_root_path: Optional[str]
    thresholds_path: Optional[str]
    readings_collection: str
    farmers_collection: str
    harvests_collection: str
    predictions_collection: str
    farm_timezone: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_root_path=_read_optional_env(_STORE_ROOT_ENV, "./tmp/farm_store"),
        thresholds_path=_read_optional_env(_THRESHOLDS_PATH_ENV, None),
        readings_collection=_read_str_env(_READINGS_COLLECTION_ENV, "dataCollectionSensor"),
        farmers_collection=_read_str_env(_FARMERS_COLLECTION_ENV, "users"),
        harvests_collection=_read_str_env(_HARVESTS_COLLECTION_ENV, "farm_history"),
        predictions_collection=_read_str_env(_PREDICTIONS_COLLECTION_ENV, "monthlyYieldSummary"),
        farm_timezone=_read_str_env(_TIMEZONE_ENV, "UTC"),
        log_level=_read_log_level("INFO"),
    )
