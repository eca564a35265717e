from typing import Iterable, List, Optional


class StatusOkError(Exception):
    """Base class for monitoring engine errors."""


class StartupError(StatusOkError):
    """
    Fatal problem found before monitoring starts. Carries every collected
    problem so they can be reported together.
    """

    def __init__(self, problems: Iterable[str], message: Optional[str] = None):
        self.problems: List[str] = list(problems)
        if message is None:
            message = f"Got {len(self.problems)} error(s): " + "; ".join(self.problems)
        super().__init__(message)


class ConfigError(StartupError):
    """Malformed configuration document, probe definition, duration or URL."""


class BackendInitError(StartupError):
    """A database or notifier failed initialize() or its smoke test."""


class SmokeTestError(StartupError):
    """A probe failed its startup check."""


class RequestBuildError(StatusOkError):
    """The outbound request could not be constructed."""


class TransportError(StatusOkError):
    """Network failure or timeout while performing a probe."""


class ResponseMismatchError(StatusOkError):
    """The probe returned an unexpected status code."""

    def __init__(self, status_code: int, expected_status: int):
        self.status_code = status_code
        self.expected_status = expected_status
        super().__init__(
            f"Got Response code {status_code}. Expected Response Code {expected_status}"
        )


class BackendWriteError(StatusOkError):
    """A fan-out write or notify call failed."""

    def __init__(self, backend_name: str, operation: str, cause: BaseException):
        self.backend_name = backend_name
        self.operation = operation
        self.cause = cause
        super().__init__(f"{backend_name}: {operation} failed: {cause!r}")
