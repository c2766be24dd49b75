"""Capture sessions: drive tcpdump in a pod's ephemeral debug container."""

from podsniff.sniffer.ephemeral import (
    DEFAULT_TCPDUMP_IMAGE,
    EPHEMERAL_CONTAINER_NAME,
    EphemeralContainerSniffer,
)
from podsniff.sniffer.runner import run_capture

__all__ = [
    "DEFAULT_TCPDUMP_IMAGE",
    "EPHEMERAL_CONTAINER_NAME",
    "EphemeralContainerSniffer",
    "run_capture",
]
