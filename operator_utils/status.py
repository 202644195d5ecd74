"""Reconcile status snapshots on status-aware objects."""

import logging
from typing import Optional

from .errors import StatusPersistError
from .models import ReconcileStatus
from .resource import ManagedObject, ReconcileStatusAware
from .store import ObjectStore


class StatusTracker:
    """Reads and persists the ReconcileStatus of objects that support it."""

    def __init__(self, store: ObjectStore, logger: Optional[logging.Logger] = None):
        """
        Initialize status tracker.

        Args:
            store: Object store used for status subresource writes
            logger: Logger (module logger if None)
        """
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def supports_status(obj: ManagedObject) -> bool:
        """Check whether the object carries a ReconcileStatus."""
        return isinstance(obj, ReconcileStatusAware)

    def read_status(self, obj: ManagedObject) -> tuple[Optional[ReconcileStatus], bool]:
        """
        Read the status snapshot held by the object.

        Args:
            obj: Managed object

        Returns:
            (snapshot, supported); snapshot is None when unsupported
        """
        if not isinstance(obj, ReconcileStatusAware):
            return None, False
        return obj.get_reconcile_status(), True

    def write_status(self, obj: ManagedObject, snapshot: ReconcileStatus) -> None:
        """
        Set the snapshot on the object and persist it.

        Args:
            obj: Status-aware managed object, updated with the stored result
            snapshot: Status to record

        Raises:
            StatusPersistError: If the status subresource write fails
        """
        if not isinstance(obj, ReconcileStatusAware):
            raise TypeError(f"{obj} does not support reconcile status")

        obj.set_reconcile_status(snapshot)
        try:
            stored = self.store.replace_status(obj)
        except Exception as e:
            self.logger.error(f"Unable to update status of {obj}: {e}")
            raise StatusPersistError(f"Unable to update status of {obj}: {e}") from e
        obj.load(stored)
