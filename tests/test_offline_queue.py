#!/usr/bin/env python3
"""Tests for the offline mutation queue."""

import pytest

from fueltrack import (
    MemoryQueueBackend,
    OfflineQueue,
    ValidationError,
    YamlQueueBackend,
    YamlStore,
    store_executor,
)
from fueltrack.offline_queue import QueuedAction


def failing(action):
    raise ConnectionError("offline")


class TestOfflineQueue:
    """Tests for OfflineQueue with the memory backend."""

    @pytest.fixture
    def queue(self):
        return OfflineQueue(MemoryQueueBackend())

    def test_append_and_peek_in_order(self, queue):
        first = queue.append("addVehicle", {"name": "A"})
        second = queue.append("addVehicle", {"name": "B"})
        assert len(queue) == 2
        assert [a.id for a in queue.peek_all()] == [first.id, second.id]

    def test_remove_and_clear(self, queue):
        action = queue.append("addVehicle", {"name": "A"})
        queue.append("addVehicle", {"name": "B"})
        queue.remove(action.id)
        assert len(queue) == 1
        queue.clear()
        assert len(queue) == 0

    def test_drain_success_removes(self, queue):
        seen = []
        action = queue.append("addVehicle", {"name": "A"})
        result = queue.drain(seen.append)
        assert result.succeeded == [action.id]
        assert [a.id for a in seen] == [action.id]
        assert len(queue) == 0

    def test_failure_increments_retries(self, queue):
        action = queue.append("addVehicle", {"name": "A"})
        result = queue.drain(failing)
        assert result.retried == [action.id]
        assert queue.peek_all()[0].retries == 1

    def test_dropped_after_max_retries(self, queue):
        action = queue.append("addVehicle", {"name": "A"})
        queue.drain(failing)
        queue.drain(failing)
        result = queue.drain(failing)
        assert result.dropped == [action.id]
        assert len(queue) == 0

    def test_configurable_retry_cap(self):
        queue = OfflineQueue(MemoryQueueBackend(), max_retries=1)
        action = queue.append("addVehicle", {"name": "A"})
        assert queue.drain(failing).dropped == [action.id]

    def test_invalid_retry_cap(self):
        with pytest.raises(ValueError):
            OfflineQueue(MemoryQueueBackend(), max_retries=0)

    def test_one_failure_does_not_block_others(self, queue):
        bad = queue.append("bad", {})
        good = queue.append("good", {})

        def executor(action):
            if action.kind == "bad":
                raise RuntimeError("boom")

        result = queue.drain(executor)
        assert result.succeeded == [good.id]
        assert result.retried == [bad.id]


class TestYamlQueueBackend:
    """Tests for the YAML file backend."""

    def test_survives_reopen(self, tmp_path):
        path = tmp_path / "queue.yaml"
        action = OfflineQueue(YamlQueueBackend(path)).append(
            "deleteFuelEntry", {"entry_id": "e1"}
        )
        reopened = OfflineQueue(YamlQueueBackend(path))
        actions = reopened.peek_all()
        assert len(actions) == 1
        assert actions[0].id == action.id
        assert actions[0].data == {"entry_id": "e1"}

    def test_put_replaces(self, tmp_path):
        backend = YamlQueueBackend(tmp_path / "queue.yaml")
        backend.put(QueuedAction("a1", "addVehicle", {"name": "A"}, 1.0))
        backend.put(QueuedAction("a1", "addVehicle", {"name": "A"}, 1.0, retries=2))
        actions = backend.load()
        assert len(actions) == 1
        assert actions[0].retries == 2

    def test_missing_file_is_empty(self, tmp_path):
        assert YamlQueueBackend(tmp_path / "none.yaml").load() == []


class TestStoreExecutor:
    """Tests for store_executor."""

    @pytest.fixture
    def store(self, tmp_path):
        return YamlStore(tmp_path / "fuel.yaml", "alice")

    def test_replays_fill_ups(self, store):
        car = store.add_vehicle("City Car")
        queue = OfflineQueue(MemoryQueueBackend())
        for odometer, amount in ((1000, 500), (1100, 750)):
            queue.append(
                "recordFillUp",
                {
                    "vehicle_id": car.id,
                    "odometer": odometer,
                    "price_per_liter": 100,
                    "amount_paid": amount,
                },
            )
        result = queue.drain(store_executor(store))
        assert len(result.succeeded) == 2
        latest = store.get_fuel_entries(car.id)[0]
        assert latest.distance == 100
        assert latest.fuel_used == 7.5

    def test_add_vehicle(self, store):
        queue = OfflineQueue(MemoryQueueBackend())
        queue.append("addVehicle", {"name": "Scooter", "type": "bike"})
        queue.drain(store_executor(store))
        assert [v.type for v in store.get_vehicles()] == ["bike"]

    def test_unknown_kind(self, store):
        execute = store_executor(store)
        with pytest.raises(ValidationError):
            execute(QueuedAction("a1", "launchRocket", {}, 0.0))

    def test_store_errors_are_retried(self, store):
        queue = OfflineQueue(MemoryQueueBackend())
        action = queue.append("deleteFuelEntry", {"entry_id": "missing"})
        result = queue.drain(store_executor(store))
        assert result.retried == [action.id]
