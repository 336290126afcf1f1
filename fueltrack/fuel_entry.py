"""FuelEntry class for fill-up records."""

from datetime import datetime
from typing import Optional


class FuelEntry:
    """A single fill-up with its derived distance, fuel and efficiency."""

    def __init__(
            self,
            id: str,
            vehicle_id: str,
            odometer: float,
            price_per_liter: float,
            amount_paid: float,
            distance: float = 0,
            fuel_used: float = 0,
            efficiency: float = 0,
            created_at: Optional[datetime] = None,
            updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.odometer = odometer
        self.price_per_liter = price_per_liter
        self.amount_paid = amount_paid
        self.distance = distance
        self.fuel_used = fuel_used
        self.efficiency = efficiency
        self.created_at = created_at or datetime.now()
        self.updated_at = updated_at or self.created_at

    def __repr__(self) -> str:
        return (
            f"FuelEntry(id={self.id!r}, odometer={self.odometer}, "
            f"amount_paid={self.amount_paid}, created_at={self.created_at.isoformat()})"
        )
