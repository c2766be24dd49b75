"""Runner: setup → start → cleanup for a single capture session."""

from __future__ import annotations

import logging
from typing import IO

from podsniff.kube.gateway import ClusterGateway
from podsniff.kube.models import CaptureOptions
from podsniff.sniffer.ephemeral import EphemeralContainerSniffer

logger = logging.getLogger(__name__)


def run_capture(options: CaptureOptions, gateway: ClusterGateway, output: IO[bytes]) -> None:
    """
    Run one capture session, streaming pcap bytes into ``output``.

    cleanup() runs even when setup() or start() raised; the original error is
    what propagates.
    """
    sniffer = EphemeralContainerSniffer(options, gateway)
    target = options.target
    logger.info(
        "Sniffing on pod: '%s' [namespace: '%s', container: '%s', filter: '%s', interface: '%s']",
        target.pod,
        target.namespace,
        target.container,
        options.capture_filter,
        options.interface,
    )
    try:
        sniffer.setup()
        sniffer.start(output)
    finally:
        sniffer.cleanup()
