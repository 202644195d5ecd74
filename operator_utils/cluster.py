"""Kubernetes client connection management."""

import base64
import tempfile
from pathlib import Path
from typing import Optional

from kubernetes import config
from kubernetes.client import ApiClient, CoreV1Api
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic import DynamicClient

from .config import Settings, get_settings
from .models import ClusterConfig


class ClusterConnection:
    """Represents a connection to a single Kubernetes cluster."""

    def __init__(self, cluster_config: ClusterConfig):
        """
        Initialize cluster connection.

        Args:
            cluster_config: Cluster configuration

        Raises:
            ValueError: If kubeconfig is invalid
        """
        self.config = cluster_config
        self._api_client: Optional[ApiClient] = None
        self._core_v1: Optional[CoreV1Api] = None
        self._dynamic: Optional[DynamicClient] = None
        self._temp_kubeconfig: Optional[Path] = None

        self._initialize_client()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ClusterConnection":
        """
        Connect using the kubeconfig named in settings.

        Args:
            settings: Settings (cached settings if None)

        Returns:
            Cluster connection; in-cluster config when no kubeconfig path is set
        """
        settings = settings or get_settings()
        return cls(
            ClusterConfig(
                kubeconfig_path=settings.kubeconfig_path,
                context=settings.kube_context,
            )
        )

    def _initialize_client(self):
        """Initialize Kubernetes API client."""
        try:
            client_config = None
            if self.config.kubeconfig_data:
                # Decode base64 kubeconfig and write to temp file
                kubeconfig_content = base64.b64decode(self.config.kubeconfig_data)
                with tempfile.NamedTemporaryFile(mode="wb", delete=False) as f:
                    f.write(kubeconfig_content)
                    self._temp_kubeconfig = Path(f.name)
                client_config = config.new_client_from_config(
                    config_file=str(self._temp_kubeconfig),
                    context=self.config.context,
                )
            elif self.config.kubeconfig_path:
                client_config = config.new_client_from_config(
                    config_file=self.config.kubeconfig_path,
                    context=self.config.context,
                )
            else:
                # Try in-cluster config (for when running inside K8s)
                config.load_incluster_config()

            self._api_client = client_config or ApiClient()
            self._core_v1 = CoreV1Api(self._api_client)

        except Exception as e:
            self._remove_temp_kubeconfig()
            raise ValueError(f"Failed to initialize cluster connection: {e}") from e

    @property
    def api_client(self) -> ApiClient:
        """Get ApiClient instance."""
        if not self._api_client:
            raise RuntimeError("Cluster connection not initialized")
        return self._api_client

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance."""
        if not self._core_v1:
            raise RuntimeError("Cluster connection not initialized")
        return self._core_v1

    @property
    def dynamic(self) -> DynamicClient:
        """
        Get the discovery-backed dynamic client.

        Created on first use since construction performs API discovery.
        """
        if not self._api_client:
            raise RuntimeError("Cluster connection not initialized")
        if self._dynamic is None:
            self._dynamic = DynamicClient(self._api_client)
        return self._dynamic

    def is_healthy(self) -> bool:
        """
        Check if cluster connection is healthy.

        Returns:
            True if cluster is reachable and healthy
        """
        try:
            self.core_v1.get_api_resources()
            return True
        except ApiException:
            return False

    def _remove_temp_kubeconfig(self):
        if self._temp_kubeconfig and self._temp_kubeconfig.exists():
            self._temp_kubeconfig.unlink()
        self._temp_kubeconfig = None

    def close(self):
        """Close the cluster connection and clean up resources."""
        if self._api_client:
            self._api_client.close()
            self._api_client = None

        self._remove_temp_kubeconfig()
        self._core_v1 = None
        self._dynamic = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
