"""Tests for cluster credential loading."""

from unittest.mock import MagicMock, patch

from kubernetes.config import ConfigException

from podsniff.kube.connection import load_core_api


class TestLoadCoreApi:
    """Tests for load_core_api."""

    @patch("podsniff.kube.connection.client")
    @patch("podsniff.kube.connection.config")
    def test_prefers_in_cluster_config(self, mock_config: MagicMock, mock_client: MagicMock):
        """Test that in-cluster credentials are used when available."""
        mock_config.ConfigException = ConfigException

        api = load_core_api(kubeconfig="/tmp/kubeconfig", context="kind-dev")

        mock_config.load_incluster_config.assert_called_once_with()
        mock_config.load_kube_config.assert_not_called()
        mock_client.ApiClient.assert_called_once_with(mock_client.Configuration.get_default_copy.return_value)
        assert api is mock_client.CoreV1Api.return_value

    @patch("podsniff.kube.connection.client")
    @patch("podsniff.kube.connection.config")
    def test_falls_back_to_kubeconfig(self, mock_config: MagicMock, mock_client: MagicMock):
        """Test that kubeconfig file and context are used outside a cluster."""
        mock_config.ConfigException = ConfigException
        mock_config.load_incluster_config.side_effect = ConfigException("not in cluster")

        load_core_api(kubeconfig="/tmp/kubeconfig", context="kind-dev")

        mock_config.load_kube_config.assert_called_once_with(config_file="/tmp/kubeconfig", context="kind-dev")

    @patch("podsniff.kube.connection.client")
    @patch("podsniff.kube.connection.config")
    def test_default_kubeconfig(self, mock_config: MagicMock, mock_client: MagicMock):
        """Test that no explicit file or context leaves the kubeconfig defaults alone."""
        mock_config.ConfigException = ConfigException
        mock_config.load_incluster_config.side_effect = ConfigException("not in cluster")

        load_core_api()

        mock_config.load_kube_config.assert_called_once_with()
