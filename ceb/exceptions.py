"""
ceb.exceptions - Errors raised while supervising the wrapped application

Every fatal condition in a run is reported as a subclass of CEBError. Each
error carries a short status code so callers (and logs) can tell the
failure kinds apart without matching on class names.

Example:
    >>> from ceb.exceptions import AbortedError
    >>>
    >>> try:
    ...     await run(stop_event, with_exec(["./server"]))
    ... except AbortedError as e:
    ...     logger.error(f"Entrypoint aborted: {e}")
"""


class CEBError(Exception):
    """Base exception for all entrypoint errors."""

    code = "unknown"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class InternalError(CEBError):
    """Raised when the unique instance ID cannot be generated."""

    code = "internal"


class ConfigurationError(CEBError):
    """
    Raised when an option receives malformed input.

    This can occur due to:
    - A non-numeric PORT environment variable
    - Invalid option values supplied by the caller
    """

    code = "invalid_argument"


class AbortedError(CEBError):
    """
    Raised when the child process cannot be prepared.

    This can occur due to:
    - An empty command line
    - An executable that cannot be found on PATH
    - A required control plane connection that cannot be established
    """

    code = "aborted"


class FeatureInitError(CEBError):
    """Raised when an optional feature subsystem fails to start."""

    code = "unavailable"


class ChildProcessExitError(CEBError):
    """
    Raised when the wrapped application exits with a non-zero status
    or fails to spawn.
    """

    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


__all__ = [
    "AbortedError",
    "CEBError",
    "ChildProcessExitError",
    "ConfigurationError",
    "FeatureInitError",
    "InternalError",
]
