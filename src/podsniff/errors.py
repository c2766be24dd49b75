"""Exception hierarchy for podsniff."""

from __future__ import annotations


class PodsniffError(Exception):
    """Base class for all podsniff failures."""


class PodFetchError(PodsniffError):
    """Reading the pod from the API server failed."""

    def __init__(self, message: str, pod: str, status: int | None = None) -> None:
        super().__init__(message)
        self.pod = pod
        self.status = status


class PodNotFoundError(PodFetchError):
    """The pod does not exist in the target namespace."""


class AttachError(PodsniffError):
    """Submitting the ephemeral container to the pod failed."""

    def __init__(self, message: str, pod: str, container: str) -> None:
        super().__init__(message)
        self.pod = pod
        self.container = container


class ReadinessTimeoutError(PodsniffError):
    """The ephemeral container was attached but never reported running."""

    def __init__(self, message: str, pod: str, container: str, timeout: float) -> None:
        super().__init__(message)
        self.pod = pod
        self.container = container
        self.timeout = timeout


class ExecError(PodsniffError):
    """The exec channel failed, or the remote command reported failure."""

    def __init__(self, message: str, stderr: str = "", exit_code: int | None = None) -> None:
        self.message = message
        self.stderr = stderr
        self.exit_code = exit_code
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.stderr.strip():
            return f"{self.message}, stderr: '{self.stderr.strip()}'"
        return self.message


class CaptureSetupError(PodsniffError):
    """Setup of a capture session failed; the original error is the __cause__."""

    def __init__(self, message: str, pod: str) -> None:
        super().__init__(message)
        self.pod = pod


class CaptureFailedError(PodsniffError):
    """The remote capture command failed or its channel broke."""

    def __init__(self, message: str, pod: str, exit_code: int) -> None:
        super().__init__(message)
        self.pod = pod
        self.exit_code = exit_code
