"""Managed object interfaces and the dict-backed resource implementation."""

import copy
from abc import ABC, abstractmethod
from typing import Any, Optional

from .models import ReconcileStatus

RECONCILE_STATUS_FIELD = "reconcileStatus"


def split_api_version(api_version: str) -> tuple[str, str]:
    """
    Split an apiVersion into group and version.

    Args:
        api_version: apiVersion string (e.g. "apps/v1" or "v1")

    Returns:
        (group, version) tuple; group is "" for the core API
    """
    if "/" in api_version:
        group, version = api_version.split("/", 1)
        return group, version
    return "", api_version


class ManagedObject(ABC):
    """
    Minimal contract for an identified, storable object.

    Identity is (apiVersion, kind, namespace, name). The resource version is
    an opaque optimistic-concurrency token owned by the store.
    """

    @property
    @abstractmethod
    def api_version(self) -> str:
        """apiVersion of the object."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Kind of the object."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Object name."""

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Object namespace ("" for cluster-scoped objects)."""

    @namespace.setter
    @abstractmethod
    def namespace(self, value: str) -> None:
        pass

    @property
    @abstractmethod
    def resource_version(self) -> Optional[str]:
        """Optimistic-concurrency token."""

    @resource_version.setter
    @abstractmethod
    def resource_version(self, value: Optional[str]) -> None:
        pass

    @property
    @abstractmethod
    def uid(self) -> Optional[str]:
        """Server-assigned unique id."""

    @property
    @abstractmethod
    def owner_references(self) -> list[dict[str, Any]]:
        """Owner references in wire form."""

    @owner_references.setter
    @abstractmethod
    def owner_references(self, value: list[dict[str, Any]]) -> None:
        pass

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Return the manifest sent to the store."""

    @abstractmethod
    def load(self, manifest: dict[str, Any]) -> None:
        """Replace local state with the manifest returned by the store."""

    @property
    def key(self) -> tuple[str, str, str, str]:
        """Identity tuple (apiVersion, kind, namespace, name)."""
        return (self.api_version, self.kind, self.namespace, self.name)

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind} {self.namespace}/{self.name}"
        return f"{self.kind} {self.name}"


class ReconcileStatusAware(ABC):
    """Capability implemented by objects that carry a ReconcileStatus."""

    @abstractmethod
    def get_reconcile_status(self) -> ReconcileStatus:
        """Return the current status snapshot."""

    @abstractmethod
    def set_reconcile_status(self, status: ReconcileStatus) -> None:
        """Replace the status snapshot."""


class Resource(ManagedObject):
    """Unstructured object backed by a plain manifest dict."""

    def __init__(self, manifest: dict[str, Any]):
        """
        Initialize resource.

        Args:
            manifest: Object manifest (copied)

        Raises:
            ValueError: If apiVersion, kind or metadata.name is missing
        """
        self._manifest = copy.deepcopy(manifest)
        for field in ("apiVersion", "kind"):
            if not self._manifest.get(field):
                raise ValueError(f"Resource manifest is missing {field}")
        if not self._metadata.get("name"):
            raise ValueError("Resource manifest is missing metadata.name")

    @property
    def _metadata(self) -> dict[str, Any]:
        return self._manifest.setdefault("metadata", {})

    @property
    def api_version(self) -> str:
        return self._manifest["apiVersion"]

    @property
    def kind(self) -> str:
        return self._manifest["kind"]

    @property
    def group(self) -> str:
        return split_api_version(self.api_version)[0]

    @property
    def version(self) -> str:
        return split_api_version(self.api_version)[1]

    @property
    def name(self) -> str:
        return self._metadata["name"]

    @property
    def namespace(self) -> str:
        return self._metadata.get("namespace") or ""

    @namespace.setter
    def namespace(self, value: str) -> None:
        if value:
            self._metadata["namespace"] = value
        else:
            self._metadata.pop("namespace", None)

    @property
    def resource_version(self) -> Optional[str]:
        return self._metadata.get("resourceVersion")

    @resource_version.setter
    def resource_version(self, value: Optional[str]) -> None:
        if value:
            self._metadata["resourceVersion"] = value
        else:
            self._metadata.pop("resourceVersion", None)

    @property
    def uid(self) -> Optional[str]:
        return self._metadata.get("uid")

    @property
    def owner_references(self) -> list[dict[str, Any]]:
        return list(self._metadata.get("ownerReferences") or [])

    @owner_references.setter
    def owner_references(self, value: list[dict[str, Any]]) -> None:
        if value:
            self._metadata["ownerReferences"] = list(value)
        else:
            self._metadata.pop("ownerReferences", None)

    @property
    def labels(self) -> dict[str, str]:
        return dict(self._metadata.get("labels") or {})

    @property
    def spec(self) -> Any:
        return self._manifest.get("spec")

    @property
    def status(self) -> dict[str, Any]:
        return dict(self._manifest.get("status") or {})

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._manifest)

    def load(self, manifest: dict[str, Any]) -> None:
        self._manifest = copy.deepcopy(manifest)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.api_version}, {self})"


class StatusAwareResource(Resource, ReconcileStatusAware):
    """Resource that keeps its ReconcileStatus under status.reconcileStatus."""

    def get_reconcile_status(self) -> ReconcileStatus:
        return ReconcileStatus.from_dict(self.status.get(RECONCILE_STATUS_FIELD))

    def set_reconcile_status(self, status: ReconcileStatus) -> None:
        if not self._manifest.get("status"):
            self._manifest["status"] = {}
        self._manifest["status"][RECONCILE_STATUS_FIELD] = status.to_dict()
