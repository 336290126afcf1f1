"""ServiceRecord class for maintenance events."""

from datetime import date
from typing import Optional


class ServiceRecord:
    """A record of maintenance performed on a vehicle."""

    def __init__(
            self,
            id: str,
            vehicle_id: str,
            service_date: date,
            service_type: str,
            description: Optional[str] = None,
            cost: Optional[float] = None,
            mileage: Optional[float] = None,
            next_service_due: Optional[date] = None,
            next_service_mileage: Optional[float] = None,
            service_provider: Optional[str] = None,
            notes: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.service_date = service_date
        self.service_type = service_type
        self.description = description
        self.cost = cost
        self.mileage = mileage
        self.next_service_due = next_service_due
        self.next_service_mileage = next_service_mileage
        self.service_provider = service_provider
        self.notes = notes
