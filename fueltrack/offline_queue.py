"""
Queue of store mutations recorded while the backend is unreachable.

Actions are appended while offline and drained in order once the store
is reachable again. A failing action is retried on later drains until it
has failed `max_retries` times, then it is dropped.
"""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import yaml

from .errors import BackendError, ValidationError
from .store import FuelStore, record_fill_up

_logger = logging.getLogger(__name__)

MAX_RETRIES = 3


@dataclass
class QueuedAction:
    id: str
    kind: str
    data: Dict[str, Any]
    timestamp: float
    retries: int = 0


@dataclass
class DrainResult:
    succeeded: List[str] = field(default_factory=list)
    retried: List[str] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)


# =============================================================================
# Backends
# =============================================================================


class QueueBackend(ABC):
    """Durable storage for queued actions, keyed by action id."""

    @abstractmethod
    def load(self) -> List[QueuedAction]:
        ...

    @abstractmethod
    def put(self, action: QueuedAction) -> None:
        """Insert or replace an action."""

    @abstractmethod
    def delete(self, action_id: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryQueueBackend(QueueBackend):
    def __init__(self):
        self._actions: Dict[str, QueuedAction] = {}

    def load(self) -> List[QueuedAction]:
        return list(self._actions.values())

    def put(self, action: QueuedAction) -> None:
        self._actions[action.id] = action

    def delete(self, action_id: str) -> None:
        self._actions.pop(action_id, None)

    def clear(self) -> None:
        self._actions.clear()


class YamlQueueBackend(QueueBackend):
    """Keeps the queue in a YAML list so it survives restarts."""

    def __init__(self, filename: Union[str, Path]):
        self.filename = Path(filename)

    def _read(self) -> List[Dict[str, Any]]:
        if not self.filename.exists():
            return []
        try:
            with open(self.filename, "r") as fp:
                return yaml.load(fp, Loader=yaml.SafeLoader) or []
        except (OSError, yaml.YAMLError) as e:
            raise BackendError(f"Cannot read queue {self.filename}: {e}") from e

    def _write(self, items: List[Dict[str, Any]]) -> None:
        try:
            self.filename.parent.mkdir(parents=True, exist_ok=True)
            with open(self.filename, "w") as fp:
                yaml.dump(
                    items,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
        except OSError as e:
            raise BackendError(f"Cannot write queue {self.filename}: {e}") from e

    def load(self) -> List[QueuedAction]:
        return [QueuedAction(**item) for item in self._read()]

    def put(self, action: QueuedAction) -> None:
        items = self._read()
        item = asdict(action)
        for index, existing in enumerate(items):
            if existing["id"] == action.id:
                items[index] = item
                break
        else:
            items.append(item)
        self._write(items)

    def delete(self, action_id: str) -> None:
        self._write([i for i in self._read() if i["id"] != action_id])

    def clear(self) -> None:
        self._write([])


# =============================================================================
# Queue
# =============================================================================


class OfflineQueue:
    """FIFO of pending store mutations with bounded retries."""

    def __init__(self, backend: QueueBackend, max_retries: int = MAX_RETRIES):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.backend = backend
        self.max_retries = max_retries

    def __len__(self) -> int:
        return len(self.backend.load())

    def append(self, kind: str, data: Dict[str, Any]) -> QueuedAction:
        action = QueuedAction(
            id=str(uuid.uuid4()), kind=kind, data=dict(data), timestamp=time.time()
        )
        self.backend.put(action)
        _logger.debug("Queued %s action %s", kind, action.id)
        return action

    def peek_all(self) -> List[QueuedAction]:
        """Pending actions, oldest first."""
        return sorted(self.backend.load(), key=lambda a: a.timestamp)

    def remove(self, action_id: str) -> None:
        self.backend.delete(action_id)

    def clear(self) -> None:
        self.backend.clear()

    def drain(self, executor: Callable[[QueuedAction], Any]) -> DrainResult:
        """
        Run every pending action through `executor`, oldest first.

        Succeeded actions are removed. Failed ones have their retry count
        bumped and stay queued, unless that reaches max_retries, in which
        case they are dropped.
        """
        result = DrainResult()
        for action in self.peek_all():
            try:
                executor(action)
            except Exception as exc:  # pylint: disable=broad-except
                action.retries += 1
                if action.retries >= self.max_retries:
                    self.backend.delete(action.id)
                    result.dropped.append(action.id)
                    _logger.error(
                        "Dropping %s action %s after %d failures: %s",
                        action.kind, action.id, action.retries, exc,
                    )
                else:
                    self.backend.put(action)
                    result.retried.append(action.id)
                    _logger.warning(
                        "Action %s failed (attempt %d/%d): %s",
                        action.id, action.retries, self.max_retries, exc,
                    )
                continue
            self.backend.delete(action.id)
            result.succeeded.append(action.id)
        return result


def store_executor(store: FuelStore) -> Callable[[QueuedAction], Any]:
    """Map queued action kinds onto store calls."""
    handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {
        "recordFillUp": lambda d: record_fill_up(
            store, d["vehicle_id"], d["odometer"], d["price_per_liter"],
            d["amount_paid"], distance=d.get("distance"),
            allow_rollback=d.get("allow_rollback", True),
        ),
        "addFuelEntry": lambda d: store.add_fuel_entry(
            d["vehicle_id"], d["odometer"], d["price_per_liter"],
            d["amount_paid"], d["distance"],
        ),
        "updateFuelEntry": lambda d: store.update_fuel_entry(
            d["entry_id"], d["odometer"], d["price_per_liter"],
            d["amount_paid"], d["distance"],
        ),
        "deleteFuelEntry": lambda d: store.delete_fuel_entry(d["entry_id"]),
        "addVehicle": lambda d: store.add_vehicle(d["name"], d.get("type", "car")),
        "addServiceHistory": lambda d: store.add_service_history(
            d["vehicle_id"], d["fields"]
        ),
    }

    def execute(action: QueuedAction) -> Any:
        handler = handlers.get(action.kind)
        if handler is None:
            raise ValidationError(f"Unknown queued action: {action.kind}")
        return handler(action.data)

    return execute
