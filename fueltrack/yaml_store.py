"""YAML file implementation of the fuel store."""

import logging
import math
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dateutil import parser as date_parser

from .calculations import compute_efficiency, compute_fuel_used
from .errors import AuthenticationError, BackendError, NotFoundError, ValidationError
from .fuel_entry import FuelEntry
from .service_record import ServiceRecord
from .store import FuelStore
from .vehicle import Vehicle, normalize_vehicle_type

_logger = logging.getLogger(__name__)

# Python attribute -> YAML key
VEHICLE_KEYS = {
    "name": "name",
    "type": "type",
    "make": "make",
    "model": "model",
    "year": "year",
    "insurance_expiry": "insuranceExpiry",
    "registration_expiry": "registrationExpiry",
    "puc_expiry": "pucExpiry",
}

SERVICE_KEYS = {
    "service_date": "serviceDate",
    "service_type": "serviceType",
    "description": "description",
    "cost": "cost",
    "mileage": "mileage",
    "next_service_due": "nextServiceDue",
    "next_service_mileage": "nextServiceMileage",
    "service_provider": "serviceProvider",
    "notes": "notes",
}

DATE_FIELDS = {
    "insurance_expiry",
    "registration_expiry",
    "puc_expiry",
    "service_date",
    "next_service_due",
}
NUMBER_FIELDS = {"cost", "mileage", "next_service_mileage"}


def _empty_data() -> Dict[str, Any]:
    return {"profiles": {}, "vehicles": [], "fuelEntries": [], "serviceHistory": []}


def _as_datetime(value: Any) -> Optional[datetime]:
    """Accept datetimes, dates or ISO strings (YAML may give any of them)."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    return date_parser.isoparse(str(value))


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.isoparse(str(value)).date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def _number(value: Any, name: str) -> float:
    """Coerce a required numeric field, rejecting missing and NaN values."""
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if math.isnan(number):
        raise ValidationError(f"{name} must be a number")
    return number


def _optional_number(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    return _number(value, name)


def _vehicle_name(value: Any) -> str:
    """Strip a vehicle name; CSV exports write it unquoted, so no commas."""
    name = (value or "").strip()
    if not name:
        raise ValidationError("Vehicle name is required")
    if "," in name:
        raise ValidationError(f"Vehicle name cannot contain a comma: {name!r}")
    return name


def _entry_from_dict(d: Dict[str, Any]) -> FuelEntry:
    return FuelEntry(
        d["id"],
        d["vehicleId"],
        d["odo"],
        d["petrolPrice"],
        d["amount"],
        d.get("distance", 0),
        d.get("fuelUsed", 0),
        d.get("efficiency", 0),
        _as_datetime(d.get("createdAt")),
        _as_datetime(d.get("updatedAt")),
    )


def _vehicle_from_dict(d: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        d["id"],
        d["name"],
        d.get("type", "car"),
        d.get("make"),
        d.get("model"),
        d.get("year"),
        _as_date(d.get("insuranceExpiry")),
        _as_date(d.get("registrationExpiry")),
        _as_date(d.get("pucExpiry")),
        _as_datetime(d.get("createdAt")),
    )


def _service_from_dict(d: Dict[str, Any]) -> ServiceRecord:
    return ServiceRecord(
        d["id"],
        d["vehicleId"],
        _as_date(d["serviceDate"]),
        d["serviceType"],
        d.get("description"),
        d.get("cost"),
        d.get("mileage"),
        _as_date(d.get("nextServiceDue")),
        d.get("nextServiceMileage"),
        d.get("serviceProvider"),
        d.get("notes"),
    )


def _apply_fields(
    record: Dict[str, Any], fields: Dict[str, Any], keys: Dict[str, str]
) -> None:
    """Copy python-named fields onto a YAML record, dropping None values."""
    for name, value in fields.items():
        if name not in keys:
            raise ValidationError(f"Unknown field: {name}")
        if name in DATE_FIELDS:
            parsed = _as_date(value)
            value = parsed.isoformat() if parsed else None
        elif name in NUMBER_FIELDS:
            value = _optional_number(value, name)
        elif name == "type":
            value = normalize_vehicle_type(value)
        elif name == "year" and value not in (None, ""):
            value = int(_number(value, name))
        if value is None or value == "":
            record.pop(keys[name], None)
        else:
            record[keys[name]] = value


class YamlStore(FuelStore):
    """
    Store backed by a single YAML file shared by all users.

    Every record carries a userId; a store instance only sees the records
    of the user it was opened for. The file is read on every call and
    rewritten after every change.
    """

    def __init__(self, filename: Union[str, Path], user_id: Optional[str] = None):
        self.filename = Path(filename)
        self.user_id = user_id

    # -------------------------------------------------------------------------
    # File access
    # -------------------------------------------------------------------------

    def _require_user(self) -> str:
        if not self.user_id:
            raise AuthenticationError("Not authenticated")
        return self.user_id

    def _load(self) -> Dict[str, Any]:
        if not self.filename.exists():
            return _empty_data()
        try:
            with open(self.filename, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        except (OSError, yaml.YAMLError) as e:
            raise BackendError(f"Cannot read {self.filename}: {e}") from e
        for key, default in _empty_data().items():
            if data.get(key) is None:
                data[key] = default
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            self.filename.parent.mkdir(parents=True, exist_ok=True)
            with open(self.filename, "w") as fp:
                yaml.dump(
                    data,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
        except OSError as e:
            raise BackendError(f"Cannot write {self.filename}: {e}") from e

    def _owned(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        user = self._require_user()
        return [r for r in records if r.get("userId") == user]

    def _find(
        self, records: List[Dict[str, Any]], record_id: str, label: str
    ) -> Dict[str, Any]:
        for record in self._owned(records):
            if record["id"] == record_id:
                return record
        raise NotFoundError(f"{label} '{record_id}' not found")

    # -------------------------------------------------------------------------
    # Fuel entries
    # -------------------------------------------------------------------------

    def get_fuel_entries(
        self, vehicle_id: Optional[str] = None, limit: Optional[int] = 100
    ) -> List[FuelEntry]:
        data = self._load()
        records = self._owned(data["fuelEntries"])
        if vehicle_id:
            records = [r for r in records if r["vehicleId"] == vehicle_id]
        entries = [_entry_from_dict(r) for r in records]
        # Ties on createdAt resolve to the later insertion
        ordered = [
            e for _, e in sorted(
                enumerate(entries),
                key=lambda pair: (pair[1].created_at, pair[0]),
                reverse=True,
            )
        ]
        return ordered[:limit] if limit else ordered

    def add_fuel_entry(
        self,
        vehicle_id: str,
        odometer: float,
        price_per_liter: float,
        amount_paid: float,
        distance: float,
        created_at: Optional[datetime] = None,
    ) -> FuelEntry:
        user = self._require_user()
        odometer = _number(odometer, "odometer")
        price_per_liter = _number(price_per_liter, "price_per_liter")
        amount_paid = _number(amount_paid, "amount_paid")
        distance = _number(distance, "distance")

        data = self._load()
        self._find(data["vehicles"], vehicle_id, "Vehicle")

        fuel_used = compute_fuel_used(price_per_liter, amount_paid)
        now = created_at or datetime.now()
        record = {
            "id": str(uuid.uuid4()),
            "userId": user,
            "vehicleId": vehicle_id,
            "odo": odometer,
            "petrolPrice": price_per_liter,
            "amount": amount_paid,
            "distance": distance,
            "fuelUsed": fuel_used,
            "efficiency": compute_efficiency(distance, fuel_used),
            "createdAt": now.isoformat(),
            "updatedAt": now.isoformat(),
        }
        data["fuelEntries"].append(record)
        self._save(data)
        _logger.debug("Added fuel entry %s for vehicle %s", record["id"], vehicle_id)
        return _entry_from_dict(record)

    def update_fuel_entry(
        self,
        entry_id: str,
        odometer: float,
        price_per_liter: float,
        amount_paid: float,
        distance: float,
    ) -> FuelEntry:
        odometer = _number(odometer, "odometer")
        price_per_liter = _number(price_per_liter, "price_per_liter")
        amount_paid = _number(amount_paid, "amount_paid")
        distance = _number(distance, "distance")

        data = self._load()
        record = self._find(data["fuelEntries"], entry_id, "Fuel entry")
        fuel_used = compute_fuel_used(price_per_liter, amount_paid)
        record.update(
            {
                "odo": odometer,
                "petrolPrice": price_per_liter,
                "amount": amount_paid,
                "distance": distance,
                "fuelUsed": fuel_used,
                "efficiency": compute_efficiency(distance, fuel_used),
                "updatedAt": datetime.now().isoformat(),
            }
        )
        self._save(data)
        return _entry_from_dict(record)

    def delete_fuel_entry(self, entry_id: str) -> None:
        data = self._load()
        record = self._find(data["fuelEntries"], entry_id, "Fuel entry")
        data["fuelEntries"].remove(record)
        self._save(data)

    # -------------------------------------------------------------------------
    # Vehicles
    # -------------------------------------------------------------------------

    def get_vehicles(self) -> List[Vehicle]:
        data = self._load()
        vehicles = [_vehicle_from_dict(r) for r in self._owned(data["vehicles"])]
        return sorted(vehicles, key=lambda v: v.created_at, reverse=True)

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        data = self._load()
        return _vehicle_from_dict(self._find(data["vehicles"], vehicle_id, "Vehicle"))

    def add_vehicle(self, name: str, type: str = "car") -> Vehicle:
        user = self._require_user()
        name = _vehicle_name(name)
        data = self._load()
        record = {
            "id": str(uuid.uuid4()),
            "userId": user,
            "name": name,
            "type": normalize_vehicle_type(type),
            "createdAt": datetime.now().isoformat(),
        }
        data["vehicles"].append(record)
        self._save(data)
        _logger.info("Created vehicle %s (%s)", record["name"], record["id"])
        return _vehicle_from_dict(record)

    def update_vehicle_details(self, vehicle_id: str, fields: Dict[str, Any]) -> None:
        if "name" in fields:
            fields = dict(fields, name=_vehicle_name(fields["name"]))
        data = self._load()
        record = self._find(data["vehicles"], vehicle_id, "Vehicle")
        _apply_fields(record, fields, VEHICLE_KEYS)
        self._save(data)

    def delete_vehicle(self, vehicle_id: str) -> None:
        """Remove a vehicle with its fuel entries and service records."""
        user = self._require_user()
        data = self._load()
        record = self._find(data["vehicles"], vehicle_id, "Vehicle")
        data["vehicles"].remove(record)
        for key in ("fuelEntries", "serviceHistory"):
            data[key] = [r for r in data[key] if r.get("vehicleId") != vehicle_id]
        profile = data["profiles"].get(user) or {}
        if profile.get("defaultVehicleId") == vehicle_id:
            profile.pop("defaultVehicleId")
        self._save(data)
        _logger.info("Deleted vehicle %s", vehicle_id)

    # -------------------------------------------------------------------------
    # Service history
    # -------------------------------------------------------------------------

    def get_service_history(self, vehicle_id: str) -> List[ServiceRecord]:
        data = self._load()
        records = [
            _service_from_dict(r)
            for r in self._owned(data["serviceHistory"])
            if r["vehicleId"] == vehicle_id
        ]
        return sorted(records, key=lambda r: r.service_date, reverse=True)

    def add_service_history(self, vehicle_id: str, fields: Dict[str, Any]) -> ServiceRecord:
        user = self._require_user()
        if not fields.get("service_type"):
            raise ValidationError("service_type is required")
        if not fields.get("service_date"):
            raise ValidationError("service_date is required")
        data = self._load()
        self._find(data["vehicles"], vehicle_id, "Vehicle")
        record: Dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "userId": user,
            "vehicleId": vehicle_id,
        }
        _apply_fields(record, fields, SERVICE_KEYS)
        data["serviceHistory"].append(record)
        self._save(data)
        return _service_from_dict(record)

    def update_service_history(self, record_id: str, fields: Dict[str, Any]) -> ServiceRecord:
        for required in ("service_type", "service_date"):
            if required in fields and not fields[required]:
                raise ValidationError(f"{required} is required")
        data = self._load()
        record = self._find(data["serviceHistory"], record_id, "Service record")
        _apply_fields(record, fields, SERVICE_KEYS)
        self._save(data)
        return _service_from_dict(record)

    def delete_service_history(self, record_id: str) -> None:
        data = self._load()
        record = self._find(data["serviceHistory"], record_id, "Service record")
        data["serviceHistory"].remove(record)
        self._save(data)

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------

    def get_default_vehicle(self) -> str:
        user = self._require_user()
        profile = self._load()["profiles"].get(user) or {}
        return profile.get("defaultVehicleId") or ""

    def set_default_vehicle(self, vehicle_id: str) -> None:
        user = self._require_user()
        data = self._load()
        self._find(data["vehicles"], vehicle_id, "Vehicle")
        data["profiles"].setdefault(user, {})
        if data["profiles"][user] is None:
            data["profiles"][user] = {}
        data["profiles"][user]["defaultVehicleId"] = vehicle_id
        self._save(data)
