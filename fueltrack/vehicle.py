"""Vehicle class for the vehicles a user tracks."""

from datetime import date, datetime
from typing import Optional

VEHICLE_TYPES = ("car", "bike")

DOCUMENT_FIELDS = ("insurance_expiry", "registration_expiry", "puc_expiry")


def normalize_vehicle_type(value: Optional[str]) -> str:
    """Map free text to a known vehicle type, defaulting to car."""
    token = (value or "").strip().lower()
    return token if token in VEHICLE_TYPES else "car"


class Vehicle:
    """A car or bike owning fuel entries and service records."""

    def __init__(
            self,
            id: str,
            name: str,
            type: str = "car",
            make: Optional[str] = None,
            model: Optional[str] = None,
            year: Optional[int] = None,
            insurance_expiry: Optional[date] = None,
            registration_expiry: Optional[date] = None,
            puc_expiry: Optional[date] = None,
            created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.type = normalize_vehicle_type(type)
        self.make = make
        self.model = model
        self.year = year
        self.insurance_expiry = insurance_expiry
        self.registration_expiry = registration_expiry
        self.puc_expiry = puc_expiry
        self.created_at = created_at or datetime.now()

    @property
    def description(self) -> str:
        """Make/model/year line, or the name when those are not set."""
        if self.make and self.model:
            base = f"{self.make} {self.model}"
            return f"{base} ({self.year})" if self.year else base
        return self.name

    def documents(self):
        """Yield (field, expiry date) for every document date that is set."""
        for field in DOCUMENT_FIELDS:
            value = getattr(self, field)
            if value is not None:
                yield field, value
