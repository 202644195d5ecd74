"""Tests for ClusterConnection."""

import base64
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.exceptions import ApiException

from operator_utils import ClusterConfig, ClusterConnection, Settings


@pytest.fixture
def kube_config():
    """Patched kubernetes config loader."""
    with patch("operator_utils.cluster.config") as mock_config:
        yield mock_config


class TestClusterConfig:
    """Test cases for ClusterConfig."""

    def test_only_connection_fields(self):
        """Test that the config carries only what the connection reads."""
        assert set(ClusterConfig.model_fields) == {"kubeconfig_path", "kubeconfig_data", "context"}


class TestClusterConnection:
    """Test cases for ClusterConnection."""

    def test_kubeconfig_path(self, kube_config):
        """Test loading a kubeconfig file."""
        conn = ClusterConnection(ClusterConfig(kubeconfig_path="/tmp/kubeconfig", context="dev"))

        kube_config.new_client_from_config.assert_called_once_with(
            config_file="/tmp/kubeconfig", context="dev"
        )
        assert conn.api_client is kube_config.new_client_from_config.return_value

    def test_from_settings(self, kube_config):
        """Test connecting with the kubeconfig and context from settings."""
        settings = Settings(_env_file=None, kubeconfig_path="/etc/kube/config", kube_context="prod")

        conn = ClusterConnection.from_settings(settings)

        kube_config.new_client_from_config.assert_called_once_with(
            config_file="/etc/kube/config", context="prod"
        )
        assert conn.config.kubeconfig_path == "/etc/kube/config"

    def test_from_settings_in_cluster(self, kube_config):
        """Test that settings without a kubeconfig path use in-cluster config."""
        with patch("operator_utils.cluster.ApiClient"):
            ClusterConnection.from_settings(Settings(_env_file=None))

        kube_config.load_incluster_config.assert_called_once()
        kube_config.new_client_from_config.assert_not_called()

    def test_kubeconfig_data(self, kube_config):
        """Test that inline kubeconfig is written to a temp file and removed on close."""
        data = base64.b64encode(b"apiVersion: v1\nkind: Config\n").decode()

        conn = ClusterConnection(ClusterConfig(kubeconfig_data=data))
        temp_path = conn._temp_kubeconfig

        assert temp_path.read_bytes() == b"apiVersion: v1\nkind: Config\n"
        conn.close()
        assert not temp_path.exists()

    def test_in_cluster(self, kube_config):
        """Test falling back to in-cluster config."""
        with patch("operator_utils.cluster.ApiClient") as api_client:
            conn = ClusterConnection(ClusterConfig())

        kube_config.load_incluster_config.assert_called_once()
        assert conn.api_client is api_client.return_value

    def test_invalid_config(self, kube_config):
        """Test that loader failures surface as ValueError."""
        kube_config.load_incluster_config.side_effect = RuntimeError("not in cluster")

        with pytest.raises(ValueError):
            ClusterConnection(ClusterConfig())

    def test_dynamic_client_is_lazy(self, kube_config):
        """Test that discovery only happens on first use."""
        with patch("operator_utils.cluster.DynamicClient") as dynamic_client:
            conn = ClusterConnection(ClusterConfig(kubeconfig_path="/tmp/kubeconfig"))
            dynamic_client.assert_not_called()

            assert conn.dynamic is conn.dynamic
            dynamic_client.assert_called_once_with(conn.api_client)

    def test_is_healthy(self, kube_config):
        """Test the health check."""
        conn = ClusterConnection(ClusterConfig(kubeconfig_path="/tmp/kubeconfig"))
        conn._core_v1 = MagicMock()

        assert conn.is_healthy() is True

        conn._core_v1.get_api_resources.side_effect = ApiException(status=503)
        assert conn.is_healthy() is False

    def test_context_manager_closes(self, kube_config):
        """Test that leaving the context closes the client."""
        with ClusterConnection(ClusterConfig(kubeconfig_path="/tmp/kubeconfig")) as conn:
            api_client = conn.api_client

        api_client.close.assert_called_once()
        with pytest.raises(RuntimeError):
            conn.api_client
