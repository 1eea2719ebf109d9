"""Exceptions raised by the end-to-end harness."""


class HarnessError(Exception):
    """Base exception for harness failures."""


class ImageBuildError(HarnessError):
    """Raised when the server image cannot be built.

    The combined build output is kept so the failure can be reported as-is.
    """

    def __init__(self, message: str, output: str = ""):
        super().__init__(f"{message}\n{output}" if output else message)
        self.output = output


class ContainerStartError(HarnessError):
    """Raised when a server container fails to launch."""


class ReadinessTimeoutError(HarnessError):
    """Raised when the health endpoint never answers 200."""

    def __init__(self, url: str, attempts: int, last_error: str = ""):
        message = f"server at {url} not ready after {attempts} attempts"
        if last_error:
            message = f"{message}: {last_error}"
        super().__init__(message)
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class TransportSetupError(HarnessError):
    """Raised when a transport session cannot be constructed."""

    def __init__(self, transport: str, reason: str):
        super().__init__(f"failed to set up {transport} transport: {reason}")
        self.transport = transport
        self.reason = reason
