from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.schemas import FarmerCreate, FarmerProfile, FarmerRole, FarmerStatus, FarmerUpdate
from datastore.documents import MockDocumentCollection
from services.farmers import FarmerRegistry


@pytest.fixture
def registry() -> FarmerRegistry:
    return FarmerRegistry(MockDocumentCollection(name="users", model=FarmerProfile))


def _farmer(first_name: str, surname: str, location: str = "Calapan", land_size: float = 1.0) -> FarmerCreate:
    return FarmerCreate(
        first_name=first_name,
        surname=surname,
        email=f"{first_name.lower()}@example.com",
        location=location,
        land_size=land_size,
    )


def test_register_and_get(registry: FarmerRegistry) -> None:
    profile = registry.register(_farmer("Maria", "Santos"))

    fetched = registry.get(profile.id)

    assert fetched == profile
    assert fetched.role is FarmerRole.user
    assert fetched.status is FarmerStatus.active
    assert fetched.full_name == "Maria Santos"


def test_get_missing_farmer(registry: FarmerRegistry) -> None:
    with pytest.raises(KeyError, match="not found"):
        registry.get("missing")


def test_list_excludes_staff_and_sorts_by_name(registry: FarmerRegistry) -> None:
    registry.register(_farmer("Pedro", "Reyes"))
    registry.register(_farmer("Ana", "Cruz"))
    registry.users.put_item(
        FarmerProfile(
            id="admin-1",
            first_name="Site",
            surname="Admin",
            email="admin@example.com",
            role=FarmerRole.admin,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
    )

    names = [profile.full_name for profile in registry.list_farmers()]

    assert names == ["Ana Cruz", "Pedro Reyes"]


def test_search_and_location_filters(registry: FarmerRegistry) -> None:
    registry.register(_farmer("Maria", "Santos", location="Calapan"))
    registry.register(_farmer("Jose", "Rizal", location="Naujan"))

    assert [p.first_name for p in registry.list_farmers(search="SANTOS")] == ["Maria"]
    assert [p.first_name for p in registry.list_farmers(location="Naujan")] == ["Jose"]
    assert len(registry.list_farmers(location="All")) == 2
    assert registry.list_farmers(search="nobody") == []
    assert registry.locations() == ["Calapan", "Naujan"]


def test_update_changes_only_given_fields(registry: FarmerRegistry) -> None:
    profile = registry.register(_farmer("Maria", "Santos"))

    updated = registry.update(profile.id, FarmerUpdate(location="Victoria", status=FarmerStatus.inactive))

    assert updated.location == "Victoria"
    assert updated.status is FarmerStatus.inactive
    assert updated.first_name == "Maria"
    assert updated.updated_at is not None
    assert registry.get(profile.id).location == "Victoria"


def test_update_null_clears_optional_text_only(registry: FarmerRegistry) -> None:
    profile = registry.register(_farmer("Maria", "Santos"))
    registry.update(profile.id, FarmerUpdate(middle_name="Cruz", suffix="Jr."))

    updated = registry.update(profile.id, FarmerUpdate(middle_name=None, first_name=None, status=None))

    assert updated.middle_name == ""
    assert updated.suffix == "Jr."
    assert updated.first_name == "Maria"
    assert updated.status is FarmerStatus.active


def test_update_missing_farmer(registry: FarmerRegistry) -> None:
    with pytest.raises(KeyError, match="not found"):
        registry.update("missing", FarmerUpdate(location="Victoria"))


def test_stats_rounds_total_hectares(registry: FarmerRegistry) -> None:
    registry.register(_farmer("Maria", "Santos", land_size=1.26))
    registry.register(_farmer("Jose", "Rizal", land_size=2.3))

    stats = registry.stats(registry.farmers())

    assert stats.count == 2
    assert stats.total_hectares == 3.6
