"""Error taxonomy shared by the planner, the coordinator, and the remote client.

Remote error codes are normalized into these types at the client boundary so
nothing past it has to know about botocore error shapes.
"""

from __future__ import annotations


class ParamsError(Exception):
    pass


class InvalidConfigurationError(ParamsError, ValueError):
    """Raised for inputs that can never succeed (bad chunk size, duplicate names)."""


class RemoteError(ParamsError):
    """A failure reported by the remote control plane."""

    retryable: bool = False

    def __init__(self, message: str, *, code: str | None = None) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}" if code else message)


class TransientRemoteError(RemoteError):
    """Rate limiting or a concurrent modification; safe to retry."""

    retryable = True


class SubmissionTimeoutError(TransientRemoteError):
    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"submission did not complete within {timeout:g}s", code="Timeout")


class ValidationRemoteError(RemoteError):
    """The remote side rejected a setting name or value."""


class NotFoundError(RemoteError):
    """The parameter group no longer exists."""


class ApplyCancelledError(ParamsError):
    def __init__(self, chunk_index: int) -> None:
        self.chunk_index = chunk_index
        super().__init__(f"apply cancelled before chunk {chunk_index}")
