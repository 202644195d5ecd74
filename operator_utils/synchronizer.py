"""Idempotent synchronization of managed objects with the object store."""

import logging
from collections.abc import Iterable
from typing import Any, Optional

from kubernetes.client.exceptions import ApiException

from .errors import InvalidObjectError, OwnershipError, is_already_exists, is_not_found
from .ownership import set_controller_reference
from .resource import ManagedObject
from .store import ObjectStore


class ResourceSynchronizer:
    """
    Create, update and delete objects so that repeating a call is harmless.

    Store errors are logged and propagated unchanged; nothing here retries.
    Batch operations apply objects in order and stop at the first failure
    without undoing the objects already applied.
    """

    def __init__(self, store: ObjectStore, logger: Optional[logging.Logger] = None):
        """
        Initialize synchronizer.

        Args:
            store: Object store
            logger: Logger (module logger if None)
        """
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def _require_managed(self, obj: Any) -> ManagedObject:
        if not isinstance(obj, ManagedObject):
            error = InvalidObjectError(obj)
            self.logger.error(f"Rejected object: {error}")
            raise error
        return obj

    def _stamp(
        self,
        obj: ManagedObject,
        owner: Optional[ManagedObject],
        namespace: Optional[str],
    ) -> None:
        if owner is not None:
            # Owner stamping errors are ignored, store errors never are
            try:
                set_controller_reference(owner, obj, namespace=namespace)
            except OwnershipError as e:
                self.logger.debug(f"Ignoring owner reference error for {obj}: {e}")
        if namespace:
            obj.namespace = namespace

    def create_or_update(
        self,
        obj: ManagedObject,
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """
        Create an object, or overwrite it if it already exists.

        The stored resource version is copied onto ``obj`` before the
        overwrite, so a concurrent modification between the read and the
        write fails with a conflict.

        Args:
            obj: Desired object, updated in place with the stored result
            owner: Controller owner to stamp on the object
            namespace: Namespace overriding the object's own

        Raises:
            InvalidObjectError: If obj is not a ManagedObject
            ApiException: If the lookup (other than 404), create or update fails
        """
        obj = self._require_managed(obj)
        self._stamp(obj, owner, namespace)

        try:
            stored = self.store.get(obj.api_version, obj.kind, obj.namespace, obj.name)
        except ApiException as e:
            if not is_not_found(e):
                self.logger.error(f"Unable to look up {obj}: {e}")
                raise
            try:
                created = self.store.create(obj)
            except ApiException as create_error:
                self.logger.error(f"Unable to create {obj}: {create_error}")
                raise
            obj.load(created)
            return

        obj.resource_version = (stored.get("metadata") or {}).get("resourceVersion")
        try:
            updated = self.store.replace(obj)
        except ApiException as e:
            self.logger.error(f"Unable to update {obj}: {e}")
            raise
        obj.load(updated)

    def create_if_not_exists(
        self,
        obj: ManagedObject,
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """
        Create an object unless it already exists.

        An existing object is left untouched, even if it differs from ``obj``.

        Args:
            obj: Desired object
            owner: Controller owner to stamp on the object
            namespace: Namespace overriding the object's own

        Raises:
            InvalidObjectError: If obj is not a ManagedObject
            ApiException: If the create fails for any reason but AlreadyExists
        """
        obj = self._require_managed(obj)
        self._stamp(obj, owner, namespace)

        try:
            created = self.store.create(obj)
        except ApiException as e:
            if is_already_exists(e):
                self.logger.debug(f"{obj} already exists, leaving it untouched")
                return
            self.logger.error(f"Unable to create {obj}: {e}")
            raise
        obj.load(created)

    def delete(self, obj: ManagedObject) -> None:
        """
        Delete an object; an object that does not exist counts as deleted.

        Args:
            obj: Object to delete

        Raises:
            InvalidObjectError: If obj is not a ManagedObject
            ApiException: If the delete fails for any reason but NotFound
        """
        obj = self._require_managed(obj)

        try:
            self.store.delete(obj)
        except ApiException as e:
            if is_not_found(e):
                self.logger.debug(f"{obj} already deleted")
                return
            self.logger.error(f"Unable to delete {obj}: {e}")
            raise

    def create_or_update_all(
        self,
        objs: Iterable[ManagedObject],
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """Apply create_or_update to each object in order, stopping at the first error."""
        for obj in objs:
            self.create_or_update(obj, owner=owner, namespace=namespace)

    def create_if_not_exists_all(
        self,
        objs: Iterable[ManagedObject],
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """Apply create_if_not_exists to each object in order, stopping at the first error."""
        for obj in objs:
            self.create_if_not_exists(obj, owner=owner, namespace=namespace)

    def delete_all(self, objs: Iterable[ManagedObject]) -> None:
        """Apply delete to each object in order, stopping at the first error."""
        for obj in objs:
            self.delete(obj)
