"""
Personal fuel tracking.

This package provides the models and logic behind the fuel log:
- FuelEntry, Vehicle, ServiceRecord: stored records
- calculations: distance, fuel used and efficiency of a fill-up
- analytics: monthly/seasonal/yearly rollups, trends, refuel prediction
- csv_io: CSV export and heuristic import
- FuelStore / YamlStore: persistence contract and its YAML file backend
- OfflineQueue: pending mutations with bounded retries
- Notifier: publish/subscribe channel for user messages
"""

from .errors import (
    FuelTrackError,
    AuthenticationError,
    ValidationError,
    NotFoundError,
    BackendError,
    CsvImportError,
)
from .severity import Severity, Confidence
from .fuel_entry import FuelEntry
from .vehicle import Vehicle, VEHICLE_TYPES
from .service_record import ServiceRecord
from .calculations import (
    DerivedFields,
    compute_derived,
    compute_distance,
    compute_efficiency,
    compute_fuel_used,
)
from .store import FuelStore, record_fill_up
from .yaml_store import YamlStore
from .notifications import Notifier, Notice
from .offline_queue import (
    OfflineQueue,
    QueuedAction,
    MemoryQueueBackend,
    YamlQueueBackend,
    store_executor,
)
from .config import Settings, load_settings

__all__ = [
    "FuelTrackError",
    "AuthenticationError",
    "ValidationError",
    "NotFoundError",
    "BackendError",
    "CsvImportError",
    "Severity",
    "Confidence",
    "FuelEntry",
    "Vehicle",
    "VEHICLE_TYPES",
    "ServiceRecord",
    "DerivedFields",
    "compute_derived",
    "compute_distance",
    "compute_efficiency",
    "compute_fuel_used",
    "FuelStore",
    "record_fill_up",
    "YamlStore",
    "Notifier",
    "Notice",
    "OfflineQueue",
    "QueuedAction",
    "MemoryQueueBackend",
    "YamlQueueBackend",
    "store_executor",
    "Settings",
    "load_settings",
]
