"""Demo data: a sample car with weekly fill-ups."""

import random
from datetime import datetime, timedelta
from typing import Optional

from .store import FuelStore
from .vehicle import Vehicle

SAMPLE_PRICE = 100.0  # per litre
START_ODOMETER = 45000.0


def generate_sample_data(
    store: FuelStore,
    weeks: int = 8,
    now: Optional[datetime] = None,
    seed: Optional[int] = None,
) -> Vehicle:
    """
    Create "Sample Car" with one fill-up per week going back `weeks` weeks.

    Each week covers 150-250 km at 12-16 km/l; the newest entry is dated
    yesterday.
    """
    rng = random.Random(seed)
    now = now or datetime.now()
    vehicle = store.add_vehicle("Sample Car", "car")

    odometer = START_ODOMETER
    for week in reversed(range(weeks)):
        distance = round(150 + rng.random() * 100, 1)
        efficiency = 12 + rng.random() * 4
        amount = round(distance / efficiency * SAMPLE_PRICE, 2)
        odometer = round(odometer + distance, 1)
        store.add_fuel_entry(
            vehicle.id,
            odometer,
            SAMPLE_PRICE,
            amount,
            distance,
            created_at=now - timedelta(days=1 + week * 7),
        )
    return vehicle
