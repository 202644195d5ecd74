"""
Reconciler base - helpers shared by reconcilers.

A reconciliation pass converges the objects it manages through the
synchronizer methods and then ends with exactly one call to
:meth:`ReconcilerBase.manage_error` or :meth:`ReconcilerBase.manage_success`,
whose result tells the scheduler whether and when to run the pass again::

    class MyReconciler(ReconcilerBase):
        def reconcile(self, request):
            instance = self.load_instance(request)
            try:
                self.create_or_update_resources(self.desired(instance), owner=instance)
            except Exception as e:
                return self.manage_error(instance, e)
            return self.manage_success(instance)
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from string import Template
from typing import Any, Callable, Optional, Union

from .backoff import BackoffScheduler
from .cluster import ClusterConnection
from .config import Settings, get_settings
from .errors import StatusPersistError, TemplateError
from .events import EVENT_TYPE_WARNING, EventNotifier, KubernetesEventRecorder
from .models import ReconcileOutcome, ReconcileResult, ReconcileStatus, utcnow
from .resource import ManagedObject, Resource
from .status import StatusTracker
from .store import KubernetesObjectStore, ObjectStore
from .synchronizer import ResourceSynchronizer
from .templates import process_template_array

PROCESSING_ERROR_REASON = "ProcessingError"


class ReconcilerBase:
    """
    Base class for reconcilers.

    Wires the synchronizer, status tracker and backoff scheduler around a
    single object store and event notifier. Subclasses override
    :meth:`reconcile`; the other methods are meant to be used as is.
    """

    def __init__(
        self,
        store: ObjectStore,
        notifier: EventNotifier,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize reconciler.

        Args:
            store: Object store
            notifier: Event notifier
            settings: Settings (cached settings if None)
            logger: Logger shared by all helpers (module logger if None)
            clock: Source of "now" for status timestamps (UTC wall clock if None)
        """
        self.settings = settings or get_settings()
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or utcnow
        self._store = store
        self._notifier = notifier

        self.synchronizer = ResourceSynchronizer(store, logger=self.logger)
        self.status_tracker = StatusTracker(store, logger=self.logger)
        self.backoff = BackoffScheduler.from_settings(self.settings)

    @classmethod
    def from_cluster(
        cls,
        cluster: ClusterConnection,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ReconcilerBase":
        """
        Create a reconciler talking to a Kubernetes cluster.

        Args:
            cluster: Cluster connection
            settings: Settings (cached settings if None)
            logger: Logger (module logger if None)

        Returns:
            Reconciler using the dynamic client store and an Event recorder
        """
        settings = settings or get_settings()
        notifier = KubernetesEventRecorder(
            cluster.core_v1,
            component=settings.service_name,
            default_namespace=settings.event_namespace,
            logger=logger,
        )
        return cls(
            KubernetesObjectStore.from_connection(cluster),
            notifier,
            settings=settings,
            logger=logger,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ReconcilerBase":
        """
        Create a reconciler connected to the cluster named in settings.

        Args:
            settings: Settings (cached settings if None)
            logger: Logger (module logger if None)

        Returns:
            Reconciler built by :meth:`from_cluster`
        """
        settings = settings or get_settings()
        return cls.from_cluster(
            ClusterConnection.from_settings(settings), settings=settings, logger=logger
        )

    @property
    def store(self) -> ObjectStore:
        """Get the object store."""
        return self._store

    @property
    def notifier(self) -> EventNotifier:
        """Get the event notifier."""
        return self._notifier

    def get_resource_client(self, api_version: str, kind: str) -> Any:
        """
        Get a dynamic client resource for a kind.

        Args:
            api_version: apiVersion of the kind
            kind: Kind to resolve

        Returns:
            Dynamic client resource, usable for requests the store does not cover

        Raises:
            TypeError: If the store is not backed by a Kubernetes cluster
        """
        if not isinstance(self._store, KubernetesObjectStore):
            raise TypeError(f"{type(self._store).__name__} has no dynamic client")
        return self._store.resource_for(api_version, kind)

    def is_valid(self, obj: ManagedObject) -> bool:
        """Override to validate an instance; return False to skip reconciling it."""
        return True

    def is_initialized(self, obj: ManagedObject) -> bool:
        """Override to report whether defaults have been applied to an instance."""
        return True

    def reconcile(self, request: Any) -> ReconcileResult:
        """Override to implement a reconciliation pass."""
        return ReconcileResult.done()

    # Resource synchronization

    def create_or_update_resource(
        self,
        obj: ManagedObject,
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """Create the object or overwrite the stored one. See ResourceSynchronizer."""
        self.synchronizer.create_or_update(obj, owner=owner, namespace=namespace)

    def create_or_update_resources(
        self,
        objs: Iterable[ManagedObject],
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        self.synchronizer.create_or_update_all(objs, owner=owner, namespace=namespace)

    def create_resource_if_not_exists(
        self,
        obj: ManagedObject,
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """Create the object unless it exists. See ResourceSynchronizer."""
        self.synchronizer.create_if_not_exists(obj, owner=owner, namespace=namespace)

    def create_resources_if_not_exist(
        self,
        objs: Iterable[ManagedObject],
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        self.synchronizer.create_if_not_exists_all(objs, owner=owner, namespace=namespace)

    def delete_resource(self, obj: ManagedObject) -> None:
        """Delete the object if it exists. See ResourceSynchronizer."""
        self.synchronizer.delete(obj)

    def delete_resources(self, objs: Iterable[ManagedObject]) -> None:
        self.synchronizer.delete_all(objs)

    def _expand_template(
        self, data: Mapping[str, Any], template: Union[Template, str]
    ) -> list[Resource]:
        try:
            return process_template_array(data, template)
        except TemplateError as e:
            self.logger.error(f"Error creating manifest from template: {e}")
            raise

    def create_or_update_templated_resources(
        self,
        data: Mapping[str, Any],
        template: Union[Template, str],
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """
        Expand a template into objects and create or update each in order.

        Args:
            data: Template substitution values
            template: Template producing a list of manifests
            owner: Controller owner to stamp on every object
            namespace: Namespace overriding the objects' own

        Raises:
            TemplateError: If the template cannot be expanded
            ApiException: If a store operation fails
        """
        objs = self._expand_template(data, template)
        self.synchronizer.create_or_update_all(objs, owner=owner, namespace=namespace)

    def create_if_not_exist_templated_resources(
        self,
        data: Mapping[str, Any],
        template: Union[Template, str],
        owner: Optional[ManagedObject] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """Expand a template and create each object that does not exist yet."""
        objs = self._expand_template(data, template)
        self.synchronizer.create_if_not_exists_all(objs, owner=owner, namespace=namespace)

    def delete_templated_resources(
        self, data: Mapping[str, Any], template: Union[Template, str]
    ) -> None:
        """Expand a template and delete each object it describes."""
        objs = self._expand_template(data, template)
        self.synchronizer.delete_all(objs)

    # Pass outcome

    def _notify_warning(self, obj: ManagedObject, message: str) -> None:
        try:
            self._notifier.notify(obj, EVENT_TYPE_WARNING, PROCESSING_ERROR_REASON, message)
        except Exception as e:
            self.logger.warning(f"Event notifier failed for {obj}: {e}")

    def manage_error(self, obj: ManagedObject, issue: BaseException) -> ReconcileResult:
        """
        Record a failed pass and compute when to retry it.

        The error is published as a Warning event and, on status-aware
        objects, stored as the Failure reason. It is not raised again: the
        failure only changes the requeue delay (see :mod:`operator_utils.backoff`).
        If the status write fails the pass is retried after the fixed status
        retry delay, regardless of the failure history.

        Args:
            obj: Object being reconciled
            issue: Error that ended the pass

        Returns:
            ReconcileResult requesting a requeue; empty if obj is not a ManagedObject
        """
        if not isinstance(obj, ManagedObject):
            self.logger.error(f"Passed object is not a ManagedObject: {obj!r}")
            return ReconcileResult.done()

        message = str(issue)
        self._notify_warning(obj, message)

        previous, supported = self.status_tracker.read_status(obj)
        if not supported:
            self.logger.info(f"{obj} is not ReconcileStatusAware, not setting status")
            return ReconcileResult.requeue_in(self.backoff.untracked_failure_delay())

        now = self.clock()
        status = ReconcileStatus(
            last_update=now,
            reason=message,
            status=ReconcileOutcome.FAILURE,
        )
        try:
            self.status_tracker.write_status(obj, status)
        except StatusPersistError:
            return ReconcileResult.requeue_in(self.backoff.status_error_delay())

        return ReconcileResult.requeue_in(self.backoff.failure_delay(now, previous))

    def manage_success(self, obj: ManagedObject) -> ReconcileResult:
        """
        Record a successful pass.

        Args:
            obj: Object being reconciled

        Returns:
            Empty ReconcileResult, or a fast requeue if the status write failed
        """
        if not isinstance(obj, ManagedObject):
            self.logger.error(f"Passed object is not a ManagedObject: {obj!r}")
            return ReconcileResult.done()

        _, supported = self.status_tracker.read_status(obj)
        if not supported:
            self.logger.info(f"{obj} is not ReconcileStatusAware, not setting status")
            return ReconcileResult.done()

        status = ReconcileStatus(
            last_update=self.clock(),
            reason="",
            status=ReconcileOutcome.SUCCESS,
        )
        try:
            self.status_tracker.write_status(obj, status)
        except StatusPersistError:
            return ReconcileResult.requeue_in(self.backoff.status_error_delay())

        return ReconcileResult.done()
