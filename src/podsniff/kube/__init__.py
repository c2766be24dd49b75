"""Kubernetes layer: credentials, debug container lifecycle and exec streaming."""

from podsniff.kube.connection import load_core_api
from podsniff.kube.gateway import ClusterGateway, KubernetesGateway
from podsniff.kube.models import (
    CaptureOptions,
    CaptureTarget,
    EphemeralContainerSpec,
    ExecResult,
)

__all__ = [
    "load_core_api",
    "ClusterGateway",
    "KubernetesGateway",
    "CaptureOptions",
    "CaptureTarget",
    "EphemeralContainerSpec",
    "ExecResult",
]
