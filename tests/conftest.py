"""Pytest configuration and fixtures for operator utils tests."""

import copy
import itertools
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from operator_utils import (
    EventNotifier,
    ObjectStore,
    ReconcilerBase,
    Resource,
    Settings,
    StatusAwareResource,
)


class FakeObjectStore(ObjectStore):
    """In-memory object store that enforces resource version checks like the API server."""

    def __init__(self):
        self.objects: dict[tuple, dict] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], ApiException] = {}
        self._versions = itertools.count(1)

    def fail(self, operation: str, name: str, status: int = 500, reason: str = "InternalError"):
        """Make the next calls of ``operation`` on ``name`` raise."""
        self.failures[(operation, name)] = ApiException(status=status, reason=reason)

    def put(self, manifest: dict) -> dict:
        """Seed a stored object directly."""
        obj = Resource(manifest)
        stored = obj.to_dict()
        stored["metadata"]["resourceVersion"] = str(next(self._versions))
        stored["metadata"].setdefault("uid", f"uid-{obj.name}")
        self.objects[obj.key] = stored
        return copy.deepcopy(stored)

    def stored(self, obj) -> dict:
        return self.objects[obj.key]

    def _record(self, operation: str, name: str):
        self.calls.append((operation, name))
        error = self.failures.get((operation, name))
        if error is not None:
            raise error

    def _existing(self, key: tuple) -> dict:
        if key not in self.objects:
            raise ApiException(status=404, reason="NotFound")
        return self.objects[key]

    def _check_version(self, obj, stored: dict):
        if obj.resource_version != stored["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")

    def get(self, api_version, kind, namespace, name):
        self._record("get", name)
        return copy.deepcopy(self._existing((api_version, kind, namespace, name)))

    def create(self, obj):
        self._record("create", obj.name)
        if obj.key in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        manifest = obj.to_dict()
        manifest["metadata"]["resourceVersion"] = str(next(self._versions))
        manifest["metadata"].setdefault("uid", f"uid-{obj.name}")
        self.objects[obj.key] = manifest
        return copy.deepcopy(manifest)

    def replace(self, obj):
        self._record("replace", obj.name)
        stored = self._existing(obj.key)
        self._check_version(obj, stored)
        manifest = obj.to_dict()
        manifest["metadata"]["resourceVersion"] = str(next(self._versions))
        manifest["metadata"]["uid"] = stored["metadata"]["uid"]
        # Status only changes through the status subresource
        manifest.pop("status", None)
        if "status" in stored:
            manifest["status"] = stored["status"]
        self.objects[obj.key] = manifest
        return copy.deepcopy(manifest)

    def delete(self, obj):
        self._record("delete", obj.name)
        self._existing(obj.key)
        del self.objects[obj.key]

    def replace_status(self, obj):
        self._record("replace_status", obj.name)
        stored = self._existing(obj.key)
        self._check_version(obj, stored)
        manifest = copy.deepcopy(stored)
        manifest["status"] = obj.to_dict().get("status", {})
        manifest["metadata"]["resourceVersion"] = str(next(self._versions))
        self.objects[obj.key] = manifest
        return copy.deepcopy(manifest)


class FakeClock:
    """Controllable replacement for the wall clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def config_map_manifest(name: str, namespace: str = "default", data: dict = None) -> dict:
    """ConfigMap manifest for testing."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": name, "namespace": namespace},
        "data": data or {"key": "value"},
    }


def app_manifest(name: str = "example", namespace: str = "default") -> dict:
    """Custom resource manifest for testing."""
    return {
        "apiVersion": "example.com/v1",
        "kind": "App",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"replicas": 1},
    }


@pytest.fixture
def settings():
    """Settings isolated from the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    """Clock starting at a fixed instant."""
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    """In-memory object store."""
    return FakeObjectStore()


@pytest.fixture
def notifier():
    """Mock event notifier."""
    return MagicMock(spec=EventNotifier)


@pytest.fixture
def reconciler(store, notifier, settings, clock):
    """Reconciler on the in-memory store."""
    return ReconcilerBase(store, notifier, settings=settings, clock=clock)


@pytest.fixture
def instance(store):
    """Status-aware custom resource already persisted in the store."""
    return StatusAwareResource(store.put(app_manifest()))


@pytest.fixture
def plain_instance(store):
    """Persisted custom resource without status support."""
    return Resource(store.put(app_manifest("plain")))


@pytest.fixture
def mock_cluster_connection():
    """Mock cluster connection for testing."""
    mock_conn = MagicMock()
    mock_conn.core_v1 = MagicMock(spec=client.CoreV1Api)
    mock_conn.dynamic = MagicMock()
    return mock_conn
