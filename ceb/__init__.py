"""
ceb - Custom entrypoint for deployed applications

Wraps an application's executable as a supervised child process while
coordinating with a remote control plane. The entrypoint identifies the
running instance, assembles configuration from ordered options, starts
optional features, and tears everything down in a fixed order on exit.

Example:
    >>> import asyncio
    >>> from ceb import run, with_env_defaults, with_exec
    >>>
    >>> stop = asyncio.Event()
    >>> await run(stop, with_env_defaults(), with_exec(["./server", "--port", "5000"]))
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from ceb.config import (
    CEBConfig,
    Option,
    with_ceb_value,
    with_client,
    with_env_defaults,
    with_exec,
    with_url_agent,
)
from ceb.exceptions import (
    AbortedError,
    CEBError,
    ChildProcessExitError,
    ConfigurationError,
    FeatureInitError,
    InternalError,
)
from ceb.supervisor import CEB, run

__all__ = [
    "CEB",
    "AbortedError",
    "CEBConfig",
    "CEBError",
    "ChildProcessExitError",
    "ConfigurationError",
    "FeatureInitError",
    "InternalError",
    "Option",
    "run",
    "with_ceb_value",
    "with_client",
    "with_env_defaults",
    "with_exec",
    "with_url_agent",
]
