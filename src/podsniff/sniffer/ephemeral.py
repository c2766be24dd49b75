"""Capture session that runs tcpdump inside an ephemeral debug container."""

from __future__ import annotations

import logging
from typing import IO

from podsniff.errors import CaptureFailedError, CaptureSetupError, PodsniffError
from podsniff.kube.gateway import ClusterGateway
from podsniff.kube.models import CaptureOptions, EphemeralContainerSpec

logger = logging.getLogger(__name__)

EPHEMERAL_CONTAINER_NAME = "podsniff-debug"
DEFAULT_TCPDUMP_IMAGE = "docker.io/nicolaka/netshoot:v0.14"
TCPDUMP_BINARY = "tcpdump"


class EphemeralContainerSniffer:
    """
    One capture session against one pod: call setup(), start(), cleanup() in
    that order, once each.

    The debug container always uses the same name, so repeated sessions against
    a pod reuse it instead of piling up new containers.
    """

    def __init__(self, options: CaptureOptions, gateway: ClusterGateway) -> None:
        self.options = options
        self.gateway = gateway

    @property
    def image(self) -> str:
        return self.options.image or DEFAULT_TCPDUMP_IMAGE

    def container_spec(self) -> EphemeralContainerSpec:
        return EphemeralContainerSpec(
            name=EPHEMERAL_CONTAINER_NAME,
            image=self.image,
            target_container=self.options.target.container,
        )

    def capture_command(self) -> list[str]:
        """Build the tcpdump argv; an empty filter adds no trailing argument."""
        command = [TCPDUMP_BINARY, "-i", self.options.interface, "-U", "-w", "-"]
        if self.options.capture_filter:
            command.append(self.options.capture_filter)
        return command

    def setup(self) -> None:
        pod = self.options.target.pod
        logger.info("Creating ephemeral container in pod: '%s'", pod)
        try:
            self.gateway.attach_ephemeral_container(pod, self.container_spec(), self.options.timeout)
        except PodsniffError as e:
            logger.error("Failed to create ephemeral container in pod: '%s'", pod)
            raise CaptureSetupError(
                f"failed to set up capture in pod '{pod}': {e}", pod=pod
            ) from e
        logger.info("Ephemeral container created successfully")

    def start(self, output: IO[bytes]) -> None:
        """
        Stream tcpdump's pcap output into ``output`` until the remote process exits.

        Requires a successful setup(). If this raises, whatever was already written
        to ``output`` stays there and should be treated as a truncated capture.
        """
        logger.info("Starting remote sniffing using ephemeral container")
        result = self.gateway.execute_command(
            self.options.target.pod,
            EPHEMERAL_CONTAINER_NAME,
            self.capture_command(),
            output,
        )
        if not result.succeeded:
            message = f"{TCPDUMP_BINARY} failed, exit code: '{result.exit_code}'"
            if result.error is not None:
                message = f"{message}: {result.error}"
            raise CaptureFailedError(
                message, pod=self.options.target.pod, exit_code=result.exit_code
            ) from result.error
        logger.info("Remote sniffing using ephemeral container completed")

    def cleanup(self) -> None:
        # Ephemeral containers cannot be removed; they live until the pod is deleted.
        logger.debug("Ephemeral container cleanup not needed (removed with the pod)")
