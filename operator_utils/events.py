"""Event notification for reconciled objects."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from kubernetes.client import (
    CoreV1Api,
    CoreV1Event,
    V1EventSource,
    V1ObjectMeta,
    V1ObjectReference,
)

from .models import utcnow
from .resource import ManagedObject

EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"


class EventNotifier(ABC):
    """Fire-and-forget sink for events about managed objects."""

    @abstractmethod
    def notify(self, obj: ManagedObject, event_type: str, reason: str, message: str) -> None:
        """
        Record an event about an object.

        Implementations must not raise; delivery is best-effort.

        Args:
            obj: Object the event is about
            event_type: "Normal" or "Warning"
            reason: Short CamelCase reason (e.g. "ProcessingError")
            message: Human-readable message
        """


class KubernetesEventRecorder(EventNotifier):
    """Posts core/v1 Events to the API server."""

    def __init__(
        self,
        core_v1: CoreV1Api,
        component: str = "operator-utils",
        default_namespace: str = "default",
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize event recorder.

        Args:
            core_v1: Core API client
            component: Component reported as the event source
            default_namespace: Namespace for events about cluster-scoped objects
            logger: Logger (module logger if None)
        """
        self.core_v1 = core_v1
        self.component = component
        self.default_namespace = default_namespace
        self.logger = logger or logging.getLogger(__name__)

    def build_event(
        self, obj: ManagedObject, event_type: str, reason: str, message: str
    ) -> CoreV1Event:
        """Build the Event body for an object."""
        namespace = obj.namespace or self.default_namespace
        now = utcnow()
        return CoreV1Event(
            metadata=V1ObjectMeta(generate_name=f"{obj.name}.", namespace=namespace),
            involved_object=V1ObjectReference(
                api_version=obj.api_version,
                kind=obj.kind,
                name=obj.name,
                namespace=obj.namespace or None,
                uid=obj.uid,
                resource_version=obj.resource_version,
            ),
            type=event_type,
            reason=reason,
            message=message,
            count=1,
            first_timestamp=now,
            last_timestamp=now,
            source=V1EventSource(component=self.component),
            reporting_component=self.component,
        )

    def notify(self, obj: ManagedObject, event_type: str, reason: str, message: str) -> None:
        event = self.build_event(obj, event_type, reason, message)
        try:
            self.core_v1.create_namespaced_event(
                namespace=event.metadata.namespace, body=event
            )
        except Exception as e:
            # Events are best-effort
            self.logger.warning(f"Failed to record {reason} event for {obj}: {e}")
