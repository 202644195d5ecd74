"""Versioned object store adapters."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic import DynamicClient
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .cluster import ClusterConnection
from .errors import OperatorUtilsError
from .resource import ManagedObject


class ObjectStore(ABC):
    """
    Remote store of versioned objects.

    Implementations raise ``ApiException`` carrying the HTTP status of the
    failure: 404 when the object does not exist, 409 when it already exists
    (create) or the resource version is stale (replace).
    """

    @abstractmethod
    def get(self, api_version: str, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Read the stored manifest."""

    @abstractmethod
    def create(self, obj: ManagedObject) -> dict[str, Any]:
        """Create a new object and return the stored manifest."""

    @abstractmethod
    def replace(self, obj: ManagedObject) -> dict[str, Any]:
        """Overwrite the stored object if its resource version matches."""

    @abstractmethod
    def delete(self, obj: ManagedObject) -> None:
        """Delete the stored object."""

    @abstractmethod
    def replace_status(self, obj: ManagedObject) -> dict[str, Any]:
        """Write the object's status through the status subresource."""


def _manifest(result: Any) -> dict[str, Any]:
    if hasattr(result, "to_dict"):
        return result.to_dict()
    return dict(result)


class KubernetesObjectStore(ObjectStore):
    """ObjectStore backed by the Kubernetes dynamic client."""

    def __init__(self, dynamic: DynamicClient):
        """
        Initialize object store.

        Args:
            dynamic: Dynamic client used for discovery and requests
        """
        self.dynamic = dynamic

    @classmethod
    def from_connection(cls, cluster: ClusterConnection) -> "KubernetesObjectStore":
        """Create a store on an existing cluster connection."""
        return cls(cluster.dynamic)

    # Only discovery is retried, store writes surface every error to the
    # caller.
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ApiException),
        reraise=True,
    )
    def resource_for(self, api_version: str, kind: str) -> Any:
        """
        Resolve the API resource serving a kind.

        Args:
            api_version: apiVersion (e.g. "apps/v1")
            kind: Kind (e.g. "Deployment")

        Returns:
            Dynamic client resource

        Raises:
            ResourceNotFoundError: If discovery does not know the kind
        """
        return self.dynamic.resources.get(api_version=api_version, kind=kind)

    def get(self, api_version: str, kind: str, namespace: str, name: str) -> dict[str, Any]:
        resource = self.resource_for(api_version, kind)
        result = self.dynamic.get(resource, name=name, namespace=namespace or None)
        return _manifest(result)

    def create(self, obj: ManagedObject) -> dict[str, Any]:
        resource = self.resource_for(obj.api_version, obj.kind)
        result = self.dynamic.create(
            resource, body=obj.to_dict(), namespace=obj.namespace or None
        )
        return _manifest(result)

    def replace(self, obj: ManagedObject) -> dict[str, Any]:
        resource = self.resource_for(obj.api_version, obj.kind)
        result = self.dynamic.replace(
            resource, body=obj.to_dict(), name=obj.name, namespace=obj.namespace or None
        )
        return _manifest(result)

    def delete(self, obj: ManagedObject) -> None:
        resource = self.resource_for(obj.api_version, obj.kind)
        self.dynamic.delete(resource, name=obj.name, namespace=obj.namespace or None)

    def replace_status(self, obj: ManagedObject) -> dict[str, Any]:
        resource = self.resource_for(obj.api_version, obj.kind)
        status_resource: Optional[Any] = resource.subresources.get("status")
        if status_resource is None:
            raise OperatorUtilsError(
                f"{obj.kind} in {obj.api_version} has no status subresource"
            )
        result = self.dynamic.replace(
            status_resource,
            body=obj.to_dict(),
            name=obj.name,
            namespace=obj.namespace or None,
        )
        return _manifest(result)
