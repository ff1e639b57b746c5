"""Farmer profile registry."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Iterable, List, Optional
from uuid import uuid4

from app.schemas import FarmerCreate, FarmerProfile, FarmerRole, FarmerStats, FarmerUpdate, patch_changes
from datastore.documents import MockDocumentCollection, build_default_store
from settings import get_settings

logger = logging.getLogger(__name__)

_STAFF_ROLES = {FarmerRole.admin, FarmerRole.superadmin}
ANY_LOCATION = "All"


def _matches(profile: FarmerProfile, term: str, location: str) -> bool:
    if term and term not in profile.full_name.lower():
        return False
    if location and location != ANY_LOCATION and profile.location != location:
        return False
    return True


class FarmerRegistry:
    def __init__(self, users: MockDocumentCollection[FarmerProfile]) -> None:
        self.users = users

    def register(self, payload: FarmerCreate) -> FarmerProfile:
        profile = FarmerProfile(
            id=str(uuid4()),
            created_at=datetime.now(timezone.utc),
            **payload.model_dump(),
        )
        self.users.put_item(profile)
        logger.info("Registered farmer", extra={"document_id": profile.id})
        return profile

    def get(self, farmer_id: str) -> FarmerProfile:
        profile = self.users.get_item(farmer_id)
        if profile is None:
            raise KeyError(f"Farmer {farmer_id!r} not found.")
        return profile

    def update(self, farmer_id: str, payload: FarmerUpdate) -> FarmerProfile:
        changes = patch_changes(payload, FarmerProfile)

        def apply(profile: FarmerProfile) -> FarmerProfile:
            return profile.model_copy(
                update={**changes, "updated_at": datetime.now(timezone.utc)}
            )

        try:
            updated = self.users.update_item(farmer_id, apply)
        except KeyError as exc:
            raise KeyError(f"Farmer {farmer_id!r} not found.") from exc
        logger.info("Updated farmer", extra={"document_id": farmer_id})
        return updated

    def farmers(self) -> List[FarmerProfile]:
        """All non-staff profiles, ordered by name."""
        profiles = [profile for profile in self.users.scan() if profile.role not in _STAFF_ROLES]
        return sorted(profiles, key=lambda profile: (profile.surname.lower(), profile.first_name.lower()))

    def list_farmers(self, search: Optional[str] = None, location: Optional[str] = None) -> List[FarmerProfile]:
        term = (search or "").strip().lower()
        place = (location or "").strip()
        return [profile for profile in self.farmers() if _matches(profile, term, place)]

    def locations(self) -> List[str]:
        return sorted({profile.location for profile in self.farmers() if profile.location})

    @staticmethod
    def stats(profiles: Iterable[FarmerProfile]) -> FarmerStats:
        items = list(profiles)
        total = sum(profile.land_size for profile in items)
        return FarmerStats(count=len(items), total_hectares=round(total, 1))


@lru_cache
def build_default_registry() -> FarmerRegistry:
    settings = get_settings()
    store = build_default_store()
    return FarmerRegistry(store.collection(settings.farmers_collection, FarmerProfile))
