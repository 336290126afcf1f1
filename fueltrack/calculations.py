"""Helper functions for the derived fields of a fill-up."""

from dataclasses import dataclass
from typing import Optional

from .errors import ValidationError


@dataclass
class DerivedFields:
    """Distance, fuel and efficiency computed from a fill-up's inputs."""

    distance: float
    fuel_used: float
    efficiency: float


def compute_fuel_used(price_per_liter: float, amount_paid: float) -> float:
    """Litres bought: amount / price, or 0 when the price is 0."""
    if not price_per_liter:
        return 0.0
    return amount_paid / price_per_liter


def compute_efficiency(distance: float, fuel_used: float) -> float:
    """Kilometres per litre: distance / fuel, or 0 when no fuel was used."""
    if not fuel_used:
        return 0.0
    return distance / fuel_used


def compute_distance(
    previous_odometer: Optional[float],
    odometer: float,
    distance: Optional[float] = None,
) -> float:
    """
    Distance covered since the previous fill-up.

    - With a previous reading: odometer - previous_odometer
    - Without one: the distance the user entered, or 0
    """
    if previous_odometer is not None:
        return odometer - previous_odometer
    return distance if distance is not None else 0.0


def compute_derived(
    previous_odometer: Optional[float],
    odometer: float,
    price_per_liter: float,
    amount_paid: float,
    distance: Optional[float] = None,
    allow_rollback: bool = True,
) -> DerivedFields:
    """
    Compute distance, fuel used and efficiency for a new fill-up.

    Args:
        allow_rollback: If False, a reading below the previous odometer
            raises ValidationError instead of producing a negative distance.
    """
    dist = compute_distance(previous_odometer, odometer, distance)
    if dist < 0 and not allow_rollback:
        if previous_odometer is None:
            raise ValidationError("Distance cannot be negative")
        raise ValidationError(
            f"Odometer {odometer:,.0f} is below the previous reading "
            f"{previous_odometer:,.0f}"
        )
    fuel = compute_fuel_used(price_per_liter, amount_paid)
    return DerivedFields(
        distance=dist, fuel_used=fuel, efficiency=compute_efficiency(dist, fuel)
    )
