"""Cluster gateway: attach debug containers to pods and stream commands run in them."""

from __future__ import annotations

import json
import logging
import threading
from typing import IO, Any, Protocol

from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream
from kubernetes.stream.ws_client import ERROR_CHANNEL
from urllib3.exceptions import HTTPError
from websocket import WebSocketException

from podsniff.errors import (
    AttachError,
    ExecError,
    PodFetchError,
    PodNotFoundError,
    ReadinessTimeoutError,
)
from podsniff.kube.models import UNKNOWN_EXIT_CODE, EphemeralContainerSpec, ExecResult
from podsniff.kube.polling import run_while_false

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0

# Seconds a single websocket read may block before the loop re-checks the channel
_EXEC_UPDATE_TIMEOUT = 1

# Failures of a plain API request: server-side rejection or the connection itself
_API_ERRORS = (ApiException, HTTPError)

_TRANSPORT_ERRORS = (ApiException, WebSocketException, OSError)


class ClusterGateway(Protocol):
    """The two cluster operations a capture session is built on."""

    def attach_ephemeral_container(
        self, pod_name: str, spec: EphemeralContainerSpec, timeout: float
    ) -> None: ...

    def execute_command(
        self, pod_name: str, container_name: str, command: list[str], stdout: IO[bytes]
    ) -> ExecResult: ...


def _build_ephemeral_container(spec: EphemeralContainerSpec) -> client.V1EphemeralContainer:
    """Convert an EphemeralContainerSpec into the API model."""
    return client.V1EphemeralContainer(
        name=spec.name,
        image=spec.image,
        image_pull_policy=spec.image_pull_policy,
        command=list(spec.command),
        tty=spec.tty,
        stdin=spec.stdin,
        security_context=client.V1SecurityContext(
            capabilities=client.V1Capabilities(add=list(spec.capabilities)),
        ),
        target_container_name=spec.target_container,
    )


def _reason(e: Exception) -> str:
    return str(getattr(e, "reason", None) or e)


def _decode_exec_status(raw: Any) -> tuple[int, str | None]:
    """
    Decode the v1.Status document sent on the exec error channel.
    Returns (exit_code, failure_message); failure_message is None on success.
    """
    if not raw:
        return UNKNOWN_EXIT_CODE, "exec channel closed without reporting a status"
    try:
        status = json.loads(raw)
    except ValueError:
        return UNKNOWN_EXIT_CODE, f"unreadable exec status: {raw!r}"

    if status.get("status") == "Success":
        return 0, None

    message = status.get("message") or status.get("reason") or "remote command failed"
    if status.get("reason") == "NonZeroExitCode":
        for cause in (status.get("details") or {}).get("causes") or []:
            if cause.get("reason") == "ExitCode":
                try:
                    return int(cause.get("message")), message
                except (TypeError, ValueError):
                    break
    return UNKNOWN_EXIT_CODE, message


class KubernetesGateway:
    """ClusterGateway backed by the Kubernetes API of one namespace."""

    def __init__(
        self,
        core: client.CoreV1Api,
        namespace: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._core = core
        self.namespace = namespace
        self.poll_interval = poll_interval
        self.stop_event = stop_event

    def _read_pod(self, pod_name: str) -> Any:
        try:
            return self._core.read_namespaced_pod(name=pod_name, namespace=self.namespace)
        except _API_ERRORS as e:
            status = getattr(e, "status", None)
            message = f"failed to get pod '{pod_name}' in namespace '{self.namespace}': {_reason(e)}"
            if status == 404:
                raise PodNotFoundError(message, pod=pod_name, status=status) from e
            raise PodFetchError(message, pod=pod_name, status=status) from e

    def default_container(self, pod_name: str) -> str:
        """Return the name of the first container declared by the pod."""
        pod = self._read_pod(pod_name)
        containers = getattr(pod.spec, "containers", []) or []
        if not containers:
            raise PodFetchError(f"pod '{pod_name}' declares no containers", pod=pod_name)
        return containers[0].name

    def attach_ephemeral_container(
        self, pod_name: str, spec: EphemeralContainerSpec, timeout: float
    ) -> None:
        """
        Add ``spec`` to the pod's ephemeral containers and wait until it runs.

        Returns immediately if a container with the same name is already attached.
        Kubernetes offers no way to remove an ephemeral container: it stays until
        the pod is deleted.
        """
        logger.debug("Creating ephemeral container '%s' in pod '%s'", spec.name, pod_name)
        pod = self._read_pod(pod_name)

        existing = list(getattr(pod.spec, "ephemeral_containers", None) or [])
        if any(ec.name == spec.name for ec in existing):
            logger.info("Ephemeral container '%s' already exists in pod '%s'", spec.name, pod_name)
            return

        pod.spec.ephemeral_containers = existing + [_build_ephemeral_container(spec)]
        try:
            self._core.replace_namespaced_pod_ephemeralcontainers(
                name=pod_name,
                namespace=self.namespace,
                body=pod,
            )
        except _API_ERRORS as e:
            raise AttachError(
                f"failed to create ephemeral container '{spec.name}' in pod '{pod_name}': {_reason(e)}",
                pod=pod_name,
                container=spec.name,
            ) from e

        logger.info(
            "Ephemeral container '%s' created in pod '%s', waiting for it to be ready",
            spec.name,
            pod_name,
        )
        ready = run_while_false(
            lambda: self._ephemeral_container_running(pod_name, spec.name),
            timeout=timeout,
            interval=self.poll_interval,
            stop_event=self.stop_event,
        )
        if not ready:
            raise ReadinessTimeoutError(
                f"ephemeral container '{spec.name}' did not become ready within timeout ({timeout}s)",
                pod=pod_name,
                container=spec.name,
                timeout=timeout,
            )
        logger.info("Ephemeral container '%s' is now running", spec.name)

    def _ephemeral_container_running(self, pod_name: str, container_name: str) -> bool:
        """Return True if the named ephemeral container reports a running state."""
        try:
            pod = self._core.read_namespaced_pod_status(name=pod_name, namespace=self.namespace)
        except _API_ERRORS as e:
            logger.debug("Reading status of pod '%s' failed: %s", pod_name, _reason(e))
            return False
        for cs in getattr(pod.status, "ephemeral_container_statuses", None) or []:
            if cs.name == container_name and cs.state and cs.state.running:
                return True
        return False

    def execute_command(
        self, pod_name: str, container_name: str, command: list[str], stdout: IO[bytes]
    ) -> ExecResult:
        """
        Run ``command`` in a container of the pod, writing its stdout to ``stdout``
        chunk by chunk as frames arrive. Blocks until the remote process exits or
        the channel fails.

        Transport and remote failures are returned in ExecResult.error together
        with any stderr collected. Exceptions raised by ``stdout`` itself propagate.
        """
        logger.info(
            "Executing command: '%s' on container: '%s', pod: '%s', namespace: '%s'",
            command,
            container_name,
            pod_name,
            self.namespace,
        )
        stderr = bytearray()

        try:
            resp = stream(
                self._core.connect_get_namespaced_pod_exec,
                pod_name,
                self.namespace,
                container=container_name,
                command=command,
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
                binary=True,
                capture_all=False,
            )
        except _TRANSPORT_ERRORS as e:
            # websocket_call wraps a Ctrl-C during the handshake into ApiException
            if isinstance(e.__context__, KeyboardInterrupt):
                raise e.__context__ from None
            error = ExecError(f"failed to open exec channel to container '{container_name}': {e}")
            logger.error("Failed executing command: '%s': %s", command, error)
            return ExecResult(exit_code=UNKNOWN_EXIT_CODE, error=error)

        transport_error: Exception | None = None
        try:
            while resp.is_open():
                try:
                    resp.update(timeout=_EXEC_UPDATE_TIMEOUT)
                    out, err = self._drain(resp)
                except _TRANSPORT_ERRORS as e:
                    transport_error = e
                    break
                self._relay(out, err, stdout, stderr)
            if transport_error is None:
                out, err = self._drain(resp)
                self._relay(out, err, stdout, stderr)
                raw_status = resp.read_channel(ERROR_CHANNEL)
        finally:
            resp.close()

        stderr_text = bytes(stderr).decode("utf-8", errors="replace")
        if transport_error is not None:
            result = ExecResult(
                exit_code=UNKNOWN_EXIT_CODE,
                error=ExecError(f"exec channel failed: {transport_error}", stderr=stderr_text),
            )
        else:
            exit_code, failure = _decode_exec_status(raw_status)
            error = None
            if failure is not None:
                error = ExecError(failure, stderr=stderr_text, exit_code=exit_code)
            result = ExecResult(exit_code=exit_code, error=error)

        if result.error is not None:
            logger.error(
                "Failed executing command: '%s', exitCode: '%d': %s",
                command,
                result.exit_code,
                result.error,
            )
        else:
            logger.info(
                "Command: '%s' executed successfully, exitCode: '%d', stderr: '%s'",
                command,
                result.exit_code,
                stderr_text.strip(),
            )
        return result

    @staticmethod
    def _drain(resp: Any) -> tuple[bytes, bytes]:
        """Take whatever stdout and stderr data the websocket client has buffered."""
        out = resp.read_stdout() if resp.peek_stdout() else b""
        err = resp.read_stderr() if resp.peek_stderr() else b""
        return out, err

    @staticmethod
    def _relay(out: bytes, err: bytes, stdout: IO[bytes], stderr: bytearray) -> None:
        if out:
            stdout.write(out)
            flush = getattr(stdout, "flush", None)
            if flush is not None:
                flush()
        if err:
            stderr.extend(err)
