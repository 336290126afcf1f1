"""Document expiry and service due alerts across a user's vehicles."""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from .service_record import ServiceRecord
from .severity import Severity
from .vehicle import Vehicle

DOCUMENT_LABELS = {
    "insurance_expiry": "Insurance",
    "registration_expiry": "Registration",
    "puc_expiry": "PUC Certificate",
}


@dataclass
class VehicleAlert:
    id: str
    vehicle_id: str
    vehicle_name: str
    kind: str
    message: str
    days_until: int
    severity: Severity


def expiry_status(expiry: Optional[date], today: date, window_days: int = 30) -> str:
    """'unset', 'expired', 'expiring' (within the window) or 'ok'."""
    if expiry is None:
        return "unset"
    if expiry < today:
        return "expired"
    if (expiry - today).days <= window_days:
        return "expiring"
    return "ok"


def expiry_alerts(
    vehicles: Iterable[Vehicle], today: Optional[date] = None, window_days: int = 30
) -> List[VehicleAlert]:
    """Alerts for documents that expired or expire within the window."""
    today = today or date.today()
    alerts = []
    for vehicle in vehicles:
        for field, expiry in vehicle.documents():
            days = (expiry - today).days
            if days > window_days:
                continue
            label = DOCUMENT_LABELS[field]
            if days < 0:
                message = f"{label} expired {abs(days)} days ago"
            else:
                message = f"{label} expires in {days} days"
            alerts.append(
                VehicleAlert(
                    id=f"expiry-{vehicle.id}-{field}",
                    vehicle_id=vehicle.id,
                    vehicle_name=vehicle.name,
                    kind=f"expiry-{field}",
                    message=message,
                    days_until=days,
                    severity=Severity.CRITICAL if days < 0 else Severity.WARNING,
                )
            )
    return alerts


def service_alerts(
    records: Iterable[ServiceRecord],
    vehicle_names: Optional[Dict[str, str]] = None,
    today: Optional[date] = None,
    window_days: int = 30,
) -> List[VehicleAlert]:
    """Alerts for services whose next due date has passed or is near."""
    today = today or date.today()
    vehicle_names = vehicle_names or {}
    alerts = []
    for record in records:
        if record.next_service_due is None:
            continue
        days = (record.next_service_due - today).days
        if days > window_days:
            continue
        if days < 0:
            message = f"{record.service_type} was due {abs(days)} days ago"
        else:
            message = f"{record.service_type} due in {days} days"
        alerts.append(
            VehicleAlert(
                id=f"service-{record.id}",
                vehicle_id=record.vehicle_id,
                vehicle_name=vehicle_names.get(record.vehicle_id, ""),
                kind="service",
                message=message,
                days_until=days,
                severity=Severity.CRITICAL if days < 0 else Severity.WARNING,
            )
        )
    return alerts


def collect_alerts(store, today: Optional[date] = None, window_days: int = 30) -> List[VehicleAlert]:
    """All alerts for the store's user, most urgent first."""
    vehicles = store.get_vehicles()
    names = {v.id: v.name for v in vehicles}
    records = [r for v in vehicles for r in store.get_service_history(v.id)]
    alerts = expiry_alerts(vehicles, today, window_days)
    alerts += service_alerts(records, names, today, window_days)
    alerts.sort(key=lambda a: a.days_until)
    return alerts
