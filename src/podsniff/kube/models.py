"""Models describing capture targets, debug containers and exec outcomes."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from podsniff.errors import ExecError

# Exit code reported when the channel failed before the remote side sent a status
UNKNOWN_EXIT_CODE = -1

# Keeps the debug container alive until a command is exec'd into it
IDLE_COMMAND = ["sh", "-c", "sleep 10000000"]

# NET_RAW is required by tcpdump to open a capture socket
CAPTURE_CAPABILITIES = ["NET_RAW", "NET_ADMIN"]


class CaptureTarget(BaseModel):
    """Where a capture runs: pod and container inside a namespace."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    pod: str
    container: str


class CaptureOptions(BaseModel):
    """Everything a single capture session needs, already validated."""

    model_config = ConfigDict(frozen=True)

    target: CaptureTarget
    interface: str = "any"
    capture_filter: str = ""
    image: str | None = Field(
        default=None,
        description="Debug container image; the built-in default is used when unset",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds to wait for the debug container to start running",
    )


class EphemeralContainerSpec(BaseModel):
    """The debug container attached to the target pod."""

    model_config = ConfigDict(frozen=True)

    name: str
    image: str
    target_container: str
    capabilities: list[str] = Field(default_factory=lambda: list(CAPTURE_CAPABILITIES))
    command: list[str] = Field(default_factory=lambda: list(IDLE_COMMAND))
    image_pull_policy: str = "IfNotPresent"
    tty: bool = True
    stdin: bool = True


@dataclass
class ExecResult:
    """Outcome of a remote command. Both fields may be set at once."""

    exit_code: int
    error: ExecError | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and self.error is None
