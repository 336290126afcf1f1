#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

from fueltrack import YamlStore
from validate_yaml import load_schema, main, validate_data_file


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_expected_structure(self):
        schema = load_schema()
        assert "vehicles" in schema["properties"]
        assert "fuelEntries" in schema["properties"]


class TestValidateDataFile:
    """Tests for validate_data_file function."""

    def test_store_output_is_valid(self, tmp_path):
        """A file written by YamlStore passes validation."""
        path = tmp_path / "fuel.yaml"
        store = YamlStore(path, "alice")
        car = store.add_vehicle("City Car")
        store.update_vehicle_details(car.id, {"make": "Maruti", "year": 2019, "puc_expiry": "2025-06-01"})
        store.add_fuel_entry(car.id, 1000, 100, 500, 0)
        store.add_service_history(car.id, {"service_date": "2025-01-10", "service_type": "Oil change", "cost": 1200})
        store.set_default_vehicle(car.id)

        assert validate_data_file(path, load_schema()) == []

    def test_missing_required_field_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("""
vehicles:
  - id: v1
    userId: alice
    type: car
fuelEntries: []
""")
        errors = validate_data_file(path, load_schema())
        assert any("Schema validation" in e for e in errors)

    def test_dangling_vehicle_reference(self, tmp_path):
        path = tmp_path / "dangling.yaml"
        path.write_text("""
vehicles: []
fuelEntries:
  - id: e1
    userId: alice
    vehicleId: gone
    odo: 1000
    petrolPrice: 100
    amount: 500
    distance: 0
    createdAt: '2025-03-10T12:00:00'
""")
        errors = validate_data_file(path, load_schema())
        assert errors == ["fuelEntries record e1 references unknown vehicle gone"]

    def test_invalid_yaml_returns_parse_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("vehicles: [unclosed\n")
        errors = validate_data_file(path, load_schema())
        assert any("YAML" in e for e in errors)


class TestMain:
    """Tests for the validate_yaml entry point."""

    def test_missing_file_fails(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.yaml")]) == 1
        assert "not found" in capsys.readouterr().out

    def test_valid_file_passes(self, tmp_path, capsys):
        path = tmp_path / "fuel.yaml"
        YamlStore(path, "alice").add_vehicle("City Car")
        assert main([str(path)]) == 0
        assert "OK: fuel.yaml" in capsys.readouterr().out
