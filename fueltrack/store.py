"""Persistence contract for vehicles, fuel entries and service history."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from .calculations import compute_derived
from .fuel_entry import FuelEntry
from .service_record import ServiceRecord
from .vehicle import Vehicle


class FuelStore(ABC):
    """
    Operations the calculator, analytics and CSV code rely on.

    Entry lists come back most recent first. Implementations raise
    AuthenticationError without a user, NotFoundError for unknown ids and
    ValidationError for unusable input.
    """

    # Fuel entries

    @abstractmethod
    def get_fuel_entries(
        self, vehicle_id: Optional[str] = None, limit: Optional[int] = 100
    ) -> List[FuelEntry]:
        ...

    @abstractmethod
    def add_fuel_entry(
        self,
        vehicle_id: str,
        odometer: float,
        price_per_liter: float,
        amount_paid: float,
        distance: float,
        created_at: Optional[datetime] = None,
    ) -> FuelEntry:
        ...

    @abstractmethod
    def update_fuel_entry(
        self,
        entry_id: str,
        odometer: float,
        price_per_liter: float,
        amount_paid: float,
        distance: float,
    ) -> FuelEntry:
        ...

    @abstractmethod
    def delete_fuel_entry(self, entry_id: str) -> None:
        ...

    # Vehicles

    @abstractmethod
    def get_vehicles(self) -> List[Vehicle]:
        ...

    @abstractmethod
    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        ...

    @abstractmethod
    def add_vehicle(self, name: str, type: str = "car") -> Vehicle:
        ...

    @abstractmethod
    def update_vehicle_details(self, vehicle_id: str, fields: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def delete_vehicle(self, vehicle_id: str) -> None:
        ...

    # Service history

    @abstractmethod
    def get_service_history(self, vehicle_id: str) -> List[ServiceRecord]:
        ...

    @abstractmethod
    def add_service_history(self, vehicle_id: str, fields: Dict[str, Any]) -> ServiceRecord:
        ...

    @abstractmethod
    def update_service_history(self, record_id: str, fields: Dict[str, Any]) -> ServiceRecord:
        ...

    @abstractmethod
    def delete_service_history(self, record_id: str) -> None:
        ...

    # Profile

    @abstractmethod
    def get_default_vehicle(self) -> str:
        ...

    @abstractmethod
    def set_default_vehicle(self, vehicle_id: str) -> None:
        ...


def record_fill_up(
    store: FuelStore,
    vehicle_id: str,
    odometer: float,
    price_per_liter: float,
    amount_paid: float,
    distance: Optional[float] = None,
    allow_rollback: bool = True,
) -> FuelEntry:
    """
    Add a fill-up, deriving distance from the vehicle's latest entry.

    Without a previous entry the given distance (or 0) is used.
    """
    latest = store.get_fuel_entries(vehicle_id, limit=1)
    previous_odometer = latest[0].odometer if latest else None
    derived = compute_derived(
        previous_odometer,
        odometer,
        price_per_liter,
        amount_paid,
        distance=distance,
        allow_rollback=allow_rollback,
    )
    return store.add_fuel_entry(
        vehicle_id, odometer, price_per_liter, amount_paid, derived.distance
    )
