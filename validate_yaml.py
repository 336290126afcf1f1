#!/usr/bin/env python3
"""Validate fueltrack data files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from fueltrack import load_settings


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def find_dangling_references(data: dict) -> list[str]:
    """Entries and services whose vehicle does not exist."""
    vehicle_ids = {v["id"] for v in data.get("vehicles") or []}
    errors = []
    for key in ("fuelEntries", "serviceHistory"):
        for record in data.get(key) or []:
            if record["vehicleId"] not in vehicle_ids:
                errors.append(
                    f"{key} record {record['id']} references unknown vehicle "
                    f"{record['vehicleId']}"
                )
    for user, profile in (data.get("profiles") or {}).items():
        default_id = (profile or {}).get("defaultVehicleId")
        if default_id and default_id not in vehicle_ids:
            errors.append(f"Default vehicle of {user} does not exist: {default_id}")
    return errors


def validate_data_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single data file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
        errors.extend(find_dangling_references(data))
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given data files, or the configured one."""
    argv = sys.argv[1:] if argv is None else argv
    paths = [Path(a) for a in argv] or [load_settings().data_file]
    schema = load_schema()

    all_valid = True
    for filepath in paths:
        if not filepath.exists():
            print(f"FAIL: {filepath} (not found)")
            all_valid = False
            continue
        errors = validate_data_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
