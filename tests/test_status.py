"""Tests for StatusTracker."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from kubernetes.client.exceptions import ApiException

from conftest import app_manifest
from operator_utils import (
    ObjectStore,
    ReconcileOutcome,
    ReconcileStatus,
    Resource,
    StatusAwareResource,
    StatusPersistError,
    StatusTracker,
)

LAST_UPDATE = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def tracker(store):
    return StatusTracker(store)


class TestReadStatus:
    """Test cases for read_status."""

    def test_unsupported(self, tracker):
        """Test that a plain resource reports no support and no snapshot."""
        assert tracker.read_status(Resource(app_manifest())) == (None, False)

    def test_zero_status(self, tracker):
        """Test that a status-aware resource without status has the zero snapshot."""
        snapshot, supported = tracker.read_status(StatusAwareResource(app_manifest()))

        assert supported is True
        assert snapshot.is_zero
        assert snapshot.status == ReconcileOutcome.UNKNOWN

    def test_existing_status(self, tracker):
        """Test reading a recorded snapshot."""
        manifest = app_manifest()
        manifest["status"] = {
            "reconcileStatus": {
                "lastUpdate": "2024-01-01T12:00:00Z",
                "reason": "disk full",
                "status": "Failure",
            }
        }

        snapshot, supported = tracker.read_status(StatusAwareResource(manifest))

        assert supported is True
        assert snapshot == ReconcileStatus(
            last_update=LAST_UPDATE, reason="disk full", status=ReconcileOutcome.FAILURE
        )

    def test_supports_status(self, tracker):
        """Test the capability check."""
        assert tracker.supports_status(StatusAwareResource(app_manifest())) is True
        assert tracker.supports_status(Resource(app_manifest())) is False


class TestWriteStatus:
    """Test cases for write_status."""

    def test_persists_through_status_subresource(self, tracker, store, instance):
        """Test that the snapshot is stored and the object refreshed."""
        snapshot = ReconcileStatus(last_update=LAST_UPDATE, status=ReconcileOutcome.SUCCESS)

        tracker.write_status(instance, snapshot)

        assert store.calls == [("replace_status", instance.name)]
        assert store.stored(instance)["status"]["reconcileStatus"] == {
            "lastUpdate": "2024-01-01T12:00:00Z",
            "reason": "",
            "status": "Success",
        }
        assert instance.resource_version == store.stored(instance)["metadata"]["resourceVersion"]

    def test_store_error_is_distinguished(self):
        """Test that store failures surface as StatusPersistError."""
        store = MagicMock(spec=ObjectStore)
        cause = ApiException(status=500, reason="InternalError")
        store.replace_status.side_effect = cause
        tracker = StatusTracker(store)

        with pytest.raises(StatusPersistError) as exc_info:
            tracker.write_status(StatusAwareResource(app_manifest()), ReconcileStatus())

        assert exc_info.value.__cause__ is cause

    def test_unsupported_object(self, tracker):
        """Test that writing to a plain resource is a programming error."""
        with pytest.raises(TypeError):
            tracker.write_status(Resource(app_manifest()), ReconcileStatus())
