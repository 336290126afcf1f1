#!/usr/bin/env python3
"""Tests for the YAML file store."""

from datetime import date, datetime

import pytest
import yaml

from fueltrack import (
    AuthenticationError,
    BackendError,
    NotFoundError,
    ValidationError,
    YamlStore,
    record_fill_up,
)


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "fuel.yaml"


@pytest.fixture
def store(data_file):
    return YamlStore(data_file, "alice")


@pytest.fixture
def car(store):
    return store.add_vehicle("City Car", "car")


# =============================================================================
# Users
# =============================================================================


class TestUsers:
    """Tests for per-user isolation."""

    def test_no_user_raises(self, data_file):
        store = YamlStore(data_file)
        with pytest.raises(AuthenticationError, match="Not authenticated"):
            store.get_vehicles()
        with pytest.raises(AuthenticationError):
            store.add_vehicle("Car")

    def test_other_user_sees_nothing(self, data_file, store, car):
        bob = YamlStore(data_file, "bob")
        assert bob.get_vehicles() == []
        with pytest.raises(NotFoundError):
            bob.get_vehicle(car.id)
        with pytest.raises(NotFoundError):
            bob.add_fuel_entry(car.id, 1000, 100, 500, 0)


# =============================================================================
# Vehicles
# =============================================================================


class TestVehicles:
    """Tests for vehicle operations."""

    def test_add_and_get(self, store, car):
        assert car.name == "City Car"
        assert car.type == "car"
        assert store.get_vehicle(car.id).name == "City Car"
        assert [v.id for v in store.get_vehicles()] == [car.id]

    def test_unknown_type_defaults_to_car(self, store):
        assert store.add_vehicle("Truck", "lorry").type == "car"
        assert store.add_vehicle("Scooter", "Bike").type == "bike"

    def test_name_required(self, store):
        with pytest.raises(ValidationError):
            store.add_vehicle("   ")

    def test_name_with_comma_rejected(self, store):
        with pytest.raises(ValidationError, match="comma"):
            store.add_vehicle("Honda City, white")

    def test_rename_with_comma_rejected(self, store, car):
        with pytest.raises(ValidationError, match="comma"):
            store.update_vehicle_details(car.id, {"name": "City, Car"})
        assert store.get_vehicle(car.id).name == "City Car"

    def test_rename_strips_whitespace(self, store, car):
        store.update_vehicle_details(car.id, {"name": "  Old Car  "})
        assert store.get_vehicle(car.id).name == "Old Car"

    def test_update_details(self, store, car):
        store.update_vehicle_details(
            car.id,
            {
                "make": "Maruti",
                "model": "Swift",
                "year": "2019",
                "insurance_expiry": "2025-06-30",
            },
        )
        vehicle = store.get_vehicle(car.id)
        assert vehicle.description == "Maruti Swift (2019)"
        assert vehicle.insurance_expiry == date(2025, 6, 30)

    def test_update_clears_with_none(self, store, car):
        store.update_vehicle_details(car.id, {"make": "Honda"})
        store.update_vehicle_details(car.id, {"make": None})
        assert store.get_vehicle(car.id).make is None

    def test_update_rejects_unknown_field(self, store, car):
        with pytest.raises(ValidationError, match="Unknown field"):
            store.update_vehicle_details(car.id, {"colour": "red"})

    def test_update_rejects_bad_date(self, store, car):
        with pytest.raises(ValidationError, match="Invalid date"):
            store.update_vehicle_details(car.id, {"puc_expiry": "soon"})

    def test_delete_cascades(self, store, car):
        store.add_fuel_entry(car.id, 1000, 100, 500, 0)
        store.add_service_history(
            car.id, {"service_date": "2025-01-10", "service_type": "Oil change"}
        )
        store.set_default_vehicle(car.id)

        store.delete_vehicle(car.id)

        assert store.get_vehicles() == []
        assert store.get_fuel_entries() == []
        assert store.get_service_history(car.id) == []
        assert store.get_default_vehicle() == ""


# =============================================================================
# Fuel entries
# =============================================================================


class TestFuelEntries:
    """Tests for fuel entry operations."""

    def test_add_computes_derived_fields(self, store, car):
        entry = store.add_fuel_entry(car.id, 1250, 105, 840, 150)
        assert entry.fuel_used == 8.0
        assert entry.efficiency == 18.75

    def test_newest_first(self, store, car):
        store.add_fuel_entry(car.id, 1000, 100, 500, 0, created_at=datetime(2025, 1, 1))
        store.add_fuel_entry(car.id, 1200, 100, 500, 200, created_at=datetime(2025, 2, 1))
        store.add_fuel_entry(car.id, 1100, 100, 500, 100, created_at=datetime(2025, 1, 15))
        odometers = [e.odometer for e in store.get_fuel_entries(car.id)]
        assert odometers == [1200, 1100, 1000]

    def test_limit(self, store, car):
        for i in range(5):
            store.add_fuel_entry(car.id, 1000 + i, 100, 500, 0, created_at=datetime(2025, 1, i + 1))
        entries = store.get_fuel_entries(car.id, limit=2)
        assert [e.odometer for e in entries] == [1004, 1003]
        assert len(store.get_fuel_entries(car.id, limit=None)) == 5

    def test_filter_by_vehicle(self, store, car):
        bike = store.add_vehicle("Bike", "bike")
        store.add_fuel_entry(car.id, 1000, 100, 500, 0)
        store.add_fuel_entry(bike.id, 300, 100, 200, 0)
        assert len(store.get_fuel_entries()) == 2
        assert [e.vehicle_id for e in store.get_fuel_entries(bike.id)] == [bike.id]

    def test_missing_numbers_rejected(self, store, car):
        with pytest.raises(ValidationError, match="odometer is required"):
            store.add_fuel_entry(car.id, None, 100, 500, 0)
        with pytest.raises(ValidationError):
            store.add_fuel_entry(car.id, 1000, "abc", 500, 0)
        with pytest.raises(ValidationError):
            store.add_fuel_entry(car.id, 1000, 100, float("nan"), 0)

    def test_unknown_vehicle(self, store):
        with pytest.raises(NotFoundError):
            store.add_fuel_entry("missing", 1000, 100, 500, 0)

    def test_update_recomputes(self, store, car):
        entry = store.add_fuel_entry(car.id, 1100, 100, 750, 100)
        updated = store.update_fuel_entry(entry.id, 1100, 100, 500, 100)
        assert updated.fuel_used == 5
        assert updated.efficiency == 20
        assert updated.created_at == entry.created_at

    def test_delete(self, store, car):
        entry = store.add_fuel_entry(car.id, 1000, 100, 500, 0)
        store.delete_fuel_entry(entry.id)
        assert store.get_fuel_entries(car.id) == []
        with pytest.raises(NotFoundError):
            store.delete_fuel_entry(entry.id)


class TestRecordFillUp:
    """Tests for record_fill_up (distance from the previous odometer)."""

    def test_end_to_end_scenario(self, store, car):
        record_fill_up(store, car.id, 1000, 100, 500)
        second = record_fill_up(store, car.id, 1100, 100, 750)
        third = record_fill_up(store, car.id, 1250, 105, 840)

        assert second.distance == 100
        assert second.fuel_used == 7.5
        assert round(second.efficiency, 2) == 13.33
        assert third.distance == 150
        assert third.fuel_used == 8.0
        assert third.efficiency == 18.75

    def test_first_entry_uses_given_distance(self, store, car):
        entry = record_fill_up(store, car.id, 1000, 100, 500, distance=120)
        assert entry.distance == 120

    def test_rollback_rejected_when_disallowed(self, store, car):
        record_fill_up(store, car.id, 1000, 100, 500)
        with pytest.raises(ValidationError):
            record_fill_up(store, car.id, 900, 100, 500, allow_rollback=False)
        assert len(store.get_fuel_entries(car.id)) == 1


# =============================================================================
# Service history and profile
# =============================================================================


class TestServiceHistory:
    """Tests for service history operations."""

    def test_add_and_list_newest_first(self, store, car):
        store.add_service_history(
            car.id, {"service_date": "2024-06-01", "service_type": "Oil change", "cost": "1200"}
        )
        store.add_service_history(
            car.id,
            {
                "service_date": date(2025, 1, 10),
                "service_type": "Brake pads",
                "next_service_due": "2025-07-10",
            },
        )
        records = store.get_service_history(car.id)
        assert [r.service_type for r in records] == ["Brake pads", "Oil change"]
        assert records[0].next_service_due == date(2025, 7, 10)
        assert records[1].cost == 1200

    def test_required_fields(self, store, car):
        with pytest.raises(ValidationError, match="service_type"):
            store.add_service_history(car.id, {"service_date": "2025-01-01"})
        with pytest.raises(ValidationError, match="service_date"):
            store.add_service_history(car.id, {"service_type": "Oil change"})

    def test_update_and_delete(self, store, car):
        record = store.add_service_history(
            car.id, {"service_date": "2025-01-10", "service_type": "Oil change"}
        )
        updated = store.update_service_history(record.id, {"notes": "synthetic"})
        assert updated.notes == "synthetic"
        store.delete_service_history(record.id)
        assert store.get_service_history(car.id) == []


class TestDefaultVehicle:
    """Tests for the profile default vehicle."""

    def test_unset_is_empty(self, store):
        assert store.get_default_vehicle() == ""

    def test_set_and_get(self, store, car):
        store.set_default_vehicle(car.id)
        assert store.get_default_vehicle() == car.id

    def test_unknown_vehicle(self, store):
        with pytest.raises(NotFoundError):
            store.set_default_vehicle("missing")


class TestFile:
    """Tests for the on-disk format."""

    def test_camel_case_keys(self, data_file, store, car):
        store.add_fuel_entry(car.id, 1000, 100, 500, 0)
        data = yaml.safe_load(data_file.read_text())
        entry = data["fuelEntries"][0]
        assert entry["userId"] == "alice"
        assert entry["vehicleId"] == car.id
        assert entry["petrolPrice"] == 100
        assert "fuelUsed" in entry

    def test_corrupt_file_raises_backend_error(self, data_file, store):
        data_file.write_text("vehicles: [unclosed\n")
        with pytest.raises(BackendError):
            store.get_vehicles()
