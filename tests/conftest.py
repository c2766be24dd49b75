"""
Shared pytest fixtures for podsniff tests.

Provides:
- builders for kubernetes.client model objects (pods, ephemeral container statuses)
- FakeWSClient: a stand-in for kubernetes.stream.ws_client.WSClient fed with frames
- RecordingSink: a binary sink remembering each individual write
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from kubernetes import client

STDOUT_CHANNEL = 1
STDERR_CHANNEL = 2
ERROR_CHANNEL = 3

SUCCESS_STATUS = json.dumps({"metadata": {}, "status": "Success"}).encode()


def exit_code_status(code: int) -> bytes:
    """Status document the API server sends when the command exits non-zero."""
    return json.dumps(
        {
            "metadata": {},
            "status": "Failure",
            "message": f"command terminated with non-zero exit code: exit status {code}",
            "reason": "NonZeroExitCode",
            "details": {"causes": [{"reason": "ExitCode", "message": str(code)}]},
        }
    ).encode()


def make_pod(
    name: str = "test-pod",
    containers: tuple[str, ...] = ("app",),
    ephemeral: tuple[str, ...] = (),
) -> client.V1Pod:
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace="default"),
        spec=client.V1PodSpec(
            containers=[client.V1Container(name=c) for c in containers],
            ephemeral_containers=[client.V1EphemeralContainer(name=e) for e in ephemeral] or None,
        ),
    )


def make_status_pod(name: str = "test-pod", ephemeral_states: dict[str, str] | None = None) -> client.V1Pod:
    """Pod whose status lists ephemeral containers as 'running' or 'waiting'."""
    statuses = []
    for container_name, state in (ephemeral_states or {}).items():
        if state == "running":
            container_state = client.V1ContainerState(running=client.V1ContainerStateRunning())
        else:
            container_state = client.V1ContainerState(
                waiting=client.V1ContainerStateWaiting(reason="ContainerCreating")
            )
        statuses.append(
            client.V1ContainerStatus(
                name=container_name,
                image="docker.io/nicolaka/netshoot:v0.14",
                image_id="",
                ready=False,
                restart_count=0,
                state=container_state,
            )
        )
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace="default"),
        status=client.V1PodStatus(phase="Running", ephemeral_container_statuses=statuses or None),
    )


class FakeWSClient:
    """Replays (channel, data) frames, one per update() call, like WSClient in binary mode."""

    def __init__(self, frames: list[tuple[int, bytes]], error: Exception | None = None) -> None:
        self._frames = list(frames)
        self._error = error
        self._channels: dict[int, bytes] = {}
        self._open = True
        self.closed = False
        if not self._frames and self._error is None:
            self._open = False

    def is_open(self) -> bool:
        return self._open

    def update(self, timeout: float = 0) -> None:
        if not self._open:
            return
        if not self._frames:
            if self._error is not None:
                raise self._error
            self._open = False
            return
        channel, data = self._frames.pop(0)
        self._channels[channel] = self._channels.get(channel, b"") + data
        if not self._frames and self._error is None:
            self._open = False

    def peek_channel(self, channel: int, timeout: float = 0) -> bytes:
        return self._channels.get(channel, b"")

    def read_channel(self, channel: int, timeout: float = 0) -> bytes:
        return self._channels.pop(channel, b"")

    def peek_stdout(self, timeout: float = 0) -> bytes:
        return self.peek_channel(STDOUT_CHANNEL)

    def read_stdout(self, timeout: float | None = None) -> bytes:
        return self.read_channel(STDOUT_CHANNEL)

    def peek_stderr(self, timeout: float = 0) -> bytes:
        return self.peek_channel(STDERR_CHANNEL)

    def read_stderr(self, timeout: float | None = None) -> bytes:
        return self.read_channel(STDERR_CHANNEL)

    def close(self, **kwargs: object) -> None:
        self.closed = True
        self._open = False


class RecordingSink:
    """Binary sink that keeps every write separately."""

    def __init__(self) -> None:
        self.writes: list[bytes] = []
        self.flushes = 0

    def write(self, data: bytes) -> int:
        self.writes.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        self.flushes += 1

    def getvalue(self) -> bytes:
        return b"".join(self.writes)


@pytest.fixture
def core_api() -> MagicMock:
    """CoreV1Api double; configure return values per test."""
    return MagicMock(spec=client.CoreV1Api)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
