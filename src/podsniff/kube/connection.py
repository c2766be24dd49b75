"""Load cluster credentials and build API clients."""

from __future__ import annotations

from typing import Any

from kubernetes import client, config


def _load_kube_config(kubeconfig_path: str | None, context: str | None) -> client.Configuration:
    """Load in-cluster or kubeconfig-based configuration."""
    try:
        config.load_incluster_config()
        return client.Configuration.get_default_copy()
    except config.ConfigException:
        pass
    kwargs: dict[str, Any] = {}
    if kubeconfig_path:
        kwargs["config_file"] = str(kubeconfig_path)
    if context:
        kwargs["context"] = context
    config.load_kube_config(**kwargs)
    return client.Configuration.get_default_copy()


def load_core_api(kubeconfig: str | None = None, context: str | None = None) -> client.CoreV1Api:
    """Return a CoreV1Api bound to the resolved cluster configuration."""
    cfg = _load_kube_config(kubeconfig, context)
    return client.CoreV1Api(client.ApiClient(cfg))
