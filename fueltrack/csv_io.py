"""
CSV export and import of fuel entries.

Two layouts are written and read back:

Single vehicle:
    Vehicle: City Car
    Type: car
    Export Date: 3/14/2025

    Date,Odometer,Fuel Amount,Petrol Price,Distance,Fuel Used,Efficiency (km/l)
    3/10/2025,1250,840.00,105.00,150.00,8.00,18.75

All vehicles:
    Export Date: 3/14/2025

    Vehicle,Date,Odometer,Fuel Amount,Petrol Price,Distance,Fuel Used,Efficiency (km/l)
    City Car,3/10/2025,1250,840.00,105.00,150.00,8.00,18.75
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import CsvImportError
from .fuel_entry import FuelEntry
from .notifications import Notifier
from .store import FuelStore
from .vehicle import Vehicle, normalize_vehicle_type

_logger = logging.getLogger(__name__)

ENTRY_HEADERS = [
    "Date",
    "Odometer",
    "Fuel Amount",
    "Petrol Price",
    "Distance",
    "Fuel Used",
    "Efficiency (km/l)",
]
ALL_VEHICLES_HEADERS = ["Vehicle"] + ENTRY_HEADERS

METADATA_PREFIXES = [
    ("Vehicle:", "vehicle"),
    ("Type:", "type"),
    ("Export Date:", "export_date"),
]
HEADER_PREFIXES = ("Date,", "Vehicle,Date,")


# =============================================================================
# Formatting
# =============================================================================


def format_date(value: Union[date, datetime]) -> str:
    """US short date without zero padding, e.g. 3/7/2025."""
    return f"{value.month}/{value.day}/{value.year}"


def format_odometer(value: float) -> str:
    """Whole readings without a decimal point, others as written."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _entry_fields(entry: FuelEntry) -> List[str]:
    return [
        format_date(entry.created_at),
        format_odometer(entry.odometer),
        f"{entry.amount_paid:.2f}",
        f"{entry.price_per_liter:.2f}",
        f"{entry.distance:.2f}",
        f"{entry.fuel_used:.2f}",
        f"{entry.efficiency:.2f}",
    ]


# =============================================================================
# Export
# =============================================================================


def export_vehicle_csv(
    vehicle: Optional[Vehicle],
    entries: Sequence[FuelEntry],
    today: Optional[date] = None,
) -> str:
    """Serialize one vehicle's entries with the metadata header."""
    today = today or date.today()
    lines = [
        f"Vehicle: {vehicle.name if vehicle else 'All Vehicles'}",
        f"Type: {vehicle.type if vehicle else 'N/A'}",
        f"Export Date: {format_date(today)}",
        "",
        ",".join(ENTRY_HEADERS),
    ]
    lines.extend(",".join(_entry_fields(e)) for e in entries)
    return "\n".join(lines)


def export_all_vehicles_csv(
    groups: Iterable[Tuple[Vehicle, Sequence[FuelEntry]]],
    today: Optional[date] = None,
) -> str:
    """Serialize several vehicles into one table with a leading Vehicle column."""
    today = today or date.today()
    lines = [f"Export Date: {format_date(today)}", "", ",".join(ALL_VEHICLES_HEADERS)]
    for vehicle, entries in groups:
        lines.extend(",".join([vehicle.name] + _entry_fields(e)) for e in entries)
    return "\n".join(lines)


# =============================================================================
# Line classification
# =============================================================================


@dataclass
class MetadataLine:
    """`Vehicle:`, `Type:`, `Export Date:` or a column header row."""

    key: str
    value: str


@dataclass
class SingleVehicleRow:
    """Data row of a single-vehicle export; belongs to the current context."""

    label: str
    odometer: Optional[float]
    amount: Optional[float]
    price: Optional[float]
    distance: Optional[float]

    @property
    def malformed(self) -> bool:
        return None in (self.odometer, self.amount, self.price, self.distance)


@dataclass
class MultiVehicleRow:
    """Data row of an all-vehicles export; names its vehicle in column one."""

    vehicle_name: str
    label: str
    odometer: Optional[float]
    amount: Optional[float]
    price: Optional[float]
    distance: Optional[float]

    @property
    def malformed(self) -> bool:
        return None in (self.odometer, self.amount, self.price, self.distance)


@dataclass
class Unrecognized:
    line: str


ParsedLine = Union[MetadataLine, SingleVehicleRow, MultiVehicleRow, Unrecognized]


def parse_number(text: str) -> Optional[float]:
    """Finite float value of a field, or None when it is not a number."""
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def classify_line(line: str) -> ParsedLine:
    """
    Work out what a CSV line is.

    - Metadata: starts with a known prefix or is a column header row
    - SingleVehicleRow: 7+ fields and the second one is a number
    - MultiVehicleRow: 8+ fields otherwise
    - Unrecognized: anything else

    The single-vehicle check wins when both could apply.
    """
    stripped = line.strip()
    for prefix, key in METADATA_PREFIXES:
        if stripped.startswith(prefix):
            return MetadataLine(key, stripped[len(prefix):].strip())
    if stripped.startswith(HEADER_PREFIXES):
        return MetadataLine("header", stripped)

    parts = [p.strip() for p in stripped.split(",")]
    if len(parts) >= 7 and parse_number(parts[1]) is not None:
        return SingleVehicleRow(parts[0], *(parse_number(p) for p in parts[1:5]))
    if len(parts) >= 8:
        return MultiVehicleRow(
            parts[0], parts[1], *(parse_number(p) for p in parts[2:6])
        )
    return Unrecognized(stripped)


# =============================================================================
# Import
# =============================================================================


@dataclass
class ImportResult:
    vehicles_created: int = 0
    entries_created: int = 0
    rows_skipped: int = 0

    @property
    def message(self) -> str:
        text = f"Successfully imported {self.entries_created} fuel entries"
        if self.vehicles_created > 0:
            text += f" and {self.vehicles_created} vehicle(s)"
        return text


def import_csv(
    text: str, store: FuelStore, notifier: Optional[Notifier] = None
) -> ImportResult:
    """
    Create vehicles and fuel entries from exported CSV text.

    Rows are written one at a time in file order. Vehicles are matched by
    name against existing ones and those created earlier in the same import.
    Rows with a non-numeric odometer, amount, price or distance are
    skipped. A single-vehicle row before any `Vehicle:` line aborts the
    import with CsvImportError; rows written before that point remain.
    """
    vehicle_ids: Dict[str, str] = {v.name: v.id for v in store.get_vehicles()}
    context: Optional[Dict[str, str]] = None
    result = ImportResult()

    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        parsed = classify_line(line)

        if isinstance(parsed, MetadataLine):
            if parsed.key == "vehicle" and parsed.value:
                context = {"name": parsed.value, "type": "car"}
            elif parsed.key == "type" and context is not None:
                context["type"] = normalize_vehicle_type(parsed.value)
            continue

        if isinstance(parsed, SingleVehicleRow):
            if context is None:
                message = "Invalid CSV format: Vehicle information missing"
                _logger.error("%s (line %d)", message, number)
                if notifier:
                    notifier.error(message)
                raise CsvImportError(message)
            name, vehicle_type = context["name"], context["type"]
        elif isinstance(parsed, MultiVehicleRow):
            name, vehicle_type = parsed.vehicle_name, "car"
        else:
            _logger.debug("Ignoring unrecognized line %d: %r", number, line)
            continue

        if parsed.malformed:
            _logger.warning("Skipping line %d: non-numeric field", number)
            result.rows_skipped += 1
            continue

        vehicle_id = vehicle_ids.get(name)
        if vehicle_id is None:
            vehicle_id = store.add_vehicle(name, vehicle_type).id
            vehicle_ids[name] = vehicle_id
            result.vehicles_created += 1

        store.add_fuel_entry(
            vehicle_id, parsed.odometer, parsed.price, parsed.amount, parsed.distance
        )
        result.entries_created += 1

    _logger.info(
        "CSV import: %d entries, %d vehicles, %d skipped",
        result.entries_created, result.vehicles_created, result.rows_skipped,
    )
    if notifier:
        notifier.success(result.message)
    return result
