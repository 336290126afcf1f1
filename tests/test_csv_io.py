#!/usr/bin/env python3
"""Tests for CSV export, line classification and import."""

from datetime import date, datetime

import pytest

from fueltrack import CsvImportError, Notifier, ValidationError, YamlStore, record_fill_up
from fueltrack.csv_io import (
    MetadataLine,
    MultiVehicleRow,
    SingleVehicleRow,
    Unrecognized,
    classify_line,
    export_all_vehicles_csv,
    export_vehicle_csv,
    format_date,
    format_odometer,
    import_csv,
    parse_number,
)


@pytest.fixture
def store(tmp_path):
    return YamlStore(tmp_path / "fuel.yaml", "alice")


SINGLE_VEHICLE_CSV = """Vehicle: City Car
Type: car
Export Date: 3/14/2025

Date,Odometer,Fuel Amount,Petrol Price,Distance,Fuel Used,Efficiency (km/l)
3/10/2025,1250,840.00,105.00,150.00,8.00,18.75
3/3/2025,1100,750.00,100.00,100.00,7.50,13.33
"""

MULTI_VEHICLE_CSV = """Export Date: 3/14/2025

Vehicle,Date,Odometer,Fuel Amount,Petrol Price,Distance,Fuel Used,Efficiency (km/l)
City Car,3/10/2025,1250,840.00,105.00,150.00,8.00,18.75
Scooter,3/9/2025,820,210.00,105.00,90.00,2.00,45.00
City Car,3/3/2025,1100,750.00,100.00,100.00,7.50,13.33
"""


class TestFormatting:
    """Tests for CSV field formatting."""

    def test_date_without_padding(self):
        assert format_date(date(2025, 3, 7)) == "3/7/2025"
        assert format_date(datetime(2025, 11, 23, 14, 5)) == "11/23/2025"

    def test_odometer(self):
        assert format_odometer(1250.0) == "1250"
        assert format_odometer(1250.5) == "1250.5"


class TestExport:
    """Tests for export_vehicle_csv and export_all_vehicles_csv."""

    def test_single_vehicle_layout(self, store):
        car = store.add_vehicle("City Car")
        record_fill_up(store, car.id, 1100, 100, 750, distance=100)
        text = export_vehicle_csv(car, store.get_fuel_entries(car.id), today=date(2025, 3, 14))
        lines = text.splitlines()
        assert lines[0] == "Vehicle: City Car"
        assert lines[1] == "Type: car"
        assert lines[2] == "Export Date: 3/14/2025"
        assert lines[3] == ""
        assert lines[4].startswith("Date,Odometer,Fuel Amount")
        assert lines[5].endswith(",1100,750.00,100.00,100.00,7.50,13.33")

    def test_no_vehicle(self):
        text = export_vehicle_csv(None, [], today=date(2025, 3, 14))
        assert text.splitlines()[:2] == ["Vehicle: All Vehicles", "Type: N/A"]

    def test_all_vehicles_layout(self, store):
        car = store.add_vehicle("City Car")
        bike = store.add_vehicle("Scooter", "bike")
        record_fill_up(store, car.id, 1100, 100, 750, distance=100)
        record_fill_up(store, bike.id, 820, 105, 210, distance=90)
        groups = [(v, store.get_fuel_entries(v.id)) for v in (car, bike)]
        lines = export_all_vehicles_csv(groups, today=date(2025, 3, 14)).splitlines()
        assert lines[0] == "Export Date: 3/14/2025"
        assert lines[2].startswith("Vehicle,Date,")
        assert lines[3].startswith("City Car,")
        assert lines[4].startswith("Scooter,")


class TestClassifyLine:
    """Tests for classify_line."""

    def test_metadata(self):
        assert classify_line("Vehicle: City Car") == MetadataLine("vehicle", "City Car")
        assert classify_line("Type: bike") == MetadataLine("type", "bike")
        assert classify_line("Export Date: 3/14/2025").key == "export_date"

    def test_header_rows(self):
        assert classify_line("Date,Odometer,Fuel Amount").key == "header"
        assert classify_line("Vehicle,Date,Odometer").key == "header"

    def test_single_vehicle_row(self):
        row = classify_line("3/10/2025,1250,840.00,105.00,150.00,8.00,18.75")
        assert isinstance(row, SingleVehicleRow)
        assert row.label == "3/10/2025"
        assert (row.odometer, row.amount, row.price, row.distance) == (1250, 840, 105, 150)
        assert not row.malformed

    def test_multi_vehicle_row(self):
        row = classify_line("City Car,3/10/2025,1250,840.00,105.00,150.00,8.00,18.75")
        assert isinstance(row, MultiVehicleRow)
        assert row.vehicle_name == "City Car"
        assert row.odometer == 1250

    def test_seven_fields_with_text_odometer_unrecognized(self):
        row = classify_line("3/10/2025,abc,840.00,105.00,150.00,8.00,18.75")
        assert isinstance(row, Unrecognized)

    def test_malformed_multi_row(self):
        row = classify_line("City Car,3/10/2025,abc,840.00,105.00,150.00,8.00,18.75")
        assert isinstance(row, MultiVehicleRow)
        assert row.malformed

    def test_short_line(self):
        assert isinstance(classify_line("hello,world"), Unrecognized)

    def test_parse_number(self):
        assert parse_number("12.5") == 12.5
        assert parse_number("abc") is None
        assert parse_number("nan") is None
        assert parse_number("inf") is None


class TestImport:
    """Tests for import_csv."""

    def test_single_vehicle(self, store):
        result = import_csv(SINGLE_VEHICLE_CSV, store)
        assert result.vehicles_created == 1
        assert result.entries_created == 2
        vehicles = store.get_vehicles()
        assert [v.name for v in vehicles] == ["City Car"]
        entries = store.get_fuel_entries(vehicles[0].id)
        assert sorted(e.odometer for e in entries) == [1100, 1250]

    def test_reuses_existing_vehicle(self, store):
        car = store.add_vehicle("City Car")
        result = import_csv(SINGLE_VEHICLE_CSV, store)
        assert result.vehicles_created == 0
        assert len(store.get_fuel_entries(car.id)) == 2

    def test_multi_vehicle(self, store):
        result = import_csv(MULTI_VEHICLE_CSV, store)
        assert result.vehicles_created == 2
        assert result.entries_created == 3
        names = sorted(v.name for v in store.get_vehicles())
        assert names == ["City Car", "Scooter"]

    def test_type_line_sets_vehicle_type(self, store):
        import_csv(SINGLE_VEHICLE_CSV.replace("Type: car", "Type: bike"), store)
        assert store.get_vehicles()[0].type == "bike"

    def test_non_numeric_odometer_skipped(self, store):
        text = MULTI_VEHICLE_CSV.replace("Scooter,3/9/2025,820", "Scooter,3/9/2025,n/a")
        result = import_csv(text, store)
        assert result.entries_created == 2
        assert result.rows_skipped == 1
        assert [v.name for v in store.get_vehicles()] == ["City Car"]

    def test_missing_vehicle_context_aborts(self, store):
        notices = []
        notifier = Notifier()
        notifier.subscribe(notices.append)
        text = "3/10/2025,1250,840.00,105.00,150.00,8.00,18.75\n"
        with pytest.raises(CsvImportError, match="Vehicle information missing"):
            import_csv(text, store, notifier)
        assert [n.level for n in notices] == ["error"]
        assert store.get_fuel_entries() == []

    def test_success_notice(self, store):
        notices = []
        notifier = Notifier()
        notifier.subscribe(notices.append)
        import_csv(SINGLE_VEHICLE_CSV, store, notifier)
        assert notices[-1].level == "success"
        assert notices[-1].message == "Successfully imported 2 fuel entries and 1 vehicle(s)"

    def test_round_trip(self, store, tmp_path):
        """Export then import into an empty store preserves the numbers."""
        car = store.add_vehicle("City Car")
        record_fill_up(store, car.id, 1000, 100, 500)
        record_fill_up(store, car.id, 1100, 100, 750)
        record_fill_up(store, car.id, 1250, 105, 840)
        originals = store.get_fuel_entries(car.id)
        text = export_vehicle_csv(car, originals)

        target = YamlStore(tmp_path / "other.yaml", "alice")
        result = import_csv(text, target)
        assert result.entries_created == len(originals)

        imported = target.get_fuel_entries(target.get_vehicles()[0].id)
        key = lambda e: e.odometer
        for original, copy in zip(sorted(originals, key=key), sorted(imported, key=key)):
            assert round(copy.amount_paid, 2) == round(original.amount_paid, 2)
            assert round(copy.price_per_liter, 2) == round(original.price_per_liter, 2)
            assert round(copy.distance, 2) == round(original.distance, 2)
            assert round(copy.efficiency, 2) == round(original.efficiency, 2)

    def test_all_vehicles_round_trip_keeps_names(self, store, tmp_path):
        """Every name the store accepts survives the unquoted export."""
        car = store.add_vehicle("Honda City (white)")
        bike = store.add_vehicle("Activa 6G", "bike")
        record_fill_up(store, car.id, 1000, 100, 500)
        record_fill_up(store, bike.id, 500, 100, 200)
        text = export_all_vehicles_csv(
            [(v, store.get_fuel_entries(v.id)) for v in store.get_vehicles()]
        )

        target = YamlStore(tmp_path / "other.yaml", "alice")
        result = import_csv(text, target)
        assert result.entries_created == 2
        assert sorted(v.name for v in target.get_vehicles()) == [
            "Activa 6G",
            "Honda City (white)",
        ]

    def test_comma_in_vehicle_name_never_reaches_export(self, store):
        with pytest.raises(ValidationError, match="comma"):
            store.add_vehicle("Honda City, white")
        assert store.get_vehicles() == []
