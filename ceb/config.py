"""
ceb.config - Configuration Resolver

Options are small objects applied in the order they are passed to run().
Each one writes into a mutable ConfigBuilder (and, for identity and client
handles, into the CEB itself). Once every option has been applied the
builder is frozen into a CEBConfig that never changes for the rest of the
run.

Usage:
    >>> cfg = build_config(ceb, [with_env_defaults(), with_exec(["./server"])])
    >>> cfg.url_service_port
    5000
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from ceb.exceptions import ConfigurationError
from ceb.settings import ENV_PORT, CEBSettings

if TYPE_CHECKING:
    from ceb.client import ControlPlaneClient
    from ceb.supervisor import CEB

DEFAULT_PORT = 5000

# Optional sign followed by digits. Surrounding whitespace is rejected.
_PORT_PATTERN = re.compile(r"[+-]?[0-9]+")

URLAgent = Callable[[int], Awaitable[None]]


class CEBConfig(BaseModel):
    """Resolved entrypoint configuration. Immutable once built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    disable: bool = False
    exec_args: tuple[str, ...] = ()
    server_addr: str = ""
    server_required: bool = False
    server_tls: bool = False
    server_tls_skip_verify: bool = False
    invite_token: str = ""
    url_service_port: int = 0
    url_agent: URLAgent | None = None


@dataclass
class ConfigBuilder:
    """Mutable staging area that options write into. Last write wins."""

    disable: bool = False
    exec_args: list[str] = field(default_factory=list)
    server_addr: str = ""
    server_required: bool = False
    server_tls: bool = False
    server_tls_skip_verify: bool = False
    invite_token: str = ""
    url_service_port: int = 0
    url_agent: URLAgent | None = None

    def build(self) -> CEBConfig:
        return CEBConfig(
            disable=self.disable,
            exec_args=tuple(self.exec_args),
            server_addr=self.server_addr,
            server_required=self.server_required,
            server_tls=self.server_tls,
            server_tls_skip_verify=self.server_tls_skip_verify,
            invite_token=self.invite_token,
            url_service_port=self.url_service_port,
            url_agent=self.url_agent,
        )


class Option(ABC):
    """A single configuration step. Raising aborts the whole build."""

    @abstractmethod
    def apply(self, ceb: CEB, cfg: ConfigBuilder) -> None:
        """Write this option's values into the CEB and/or the builder."""


class _EnvDefaults(Option):
    def apply(self, ceb: CEB, cfg: ConfigBuilder) -> None:
        settings = CEBSettings()

        if settings.port == "":
            port = DEFAULT_PORT
            # Exported so the child (and its descendants) see the same port.
            os.environ[ENV_PORT] = str(DEFAULT_PORT)
        else:
            if not _PORT_PATTERN.fullmatch(settings.port):
                raise ConfigurationError(f"Invalid value of PORT: {settings.port!r}")
            port = int(settings.port)

        cfg.url_service_port = port
        cfg.server_addr = settings.server_addr
        cfg.server_required = settings.server_required_enabled
        cfg.server_tls = settings.server_tls_enabled
        cfg.server_tls_skip_verify = settings.server_tls_skip_verify_enabled
        cfg.invite_token = settings.invite_token
        cfg.disable = settings.disabled

        ceb.deployment_id = settings.deployment_id


class _Exec(Option):
    def __init__(self, args: Sequence[str]) -> None:
        self.args = list(args)

    def apply(self, ceb: CEB, cfg: ConfigBuilder) -> None:
        cfg.exec_args = list(self.args)


class _Client(Option):
    def __init__(self, client: ControlPlaneClient) -> None:
        self.client = client

    def apply(self, ceb: CEB, cfg: ConfigBuilder) -> None:
        ceb.client = self.client


class _URLAgent(Option):
    def __init__(self, agent: URLAgent) -> None:
        self.agent = agent

    def apply(self, ceb: CEB, cfg: ConfigBuilder) -> None:
        cfg.url_agent = self.agent


class _CEBValue(Option):
    def __init__(self, callback: Callable[[CEB], Any]) -> None:
        self.callback = callback

    def apply(self, ceb: CEB, cfg: ConfigBuilder) -> None:
        self.callback(ceb)


def with_env_defaults() -> Option:
    """Configure from the well-known environment variables.

    If this option is not supplied, environment based configuration is
    ignored entirely. PORT defaults to 5000 and is exported back into the
    process environment when unset.
    """
    return _EnvDefaults()


def with_exec(args: Sequence[str]) -> Option:
    """Set the binary and arguments for the child process.

    A relative executable is looked up on PATH when the child is prepared.
    """
    return _Exec(args)


def with_client(client: ControlPlaneClient) -> Option:
    """Use this control plane client directly.

    Overrides any environment or address based client configuration.
    """
    return _Client(client)


def with_url_agent(agent: URLAgent) -> Option:
    """Run ``agent(port)`` as the URL agent once features are initialized."""
    return _URLAgent(agent)


def with_ceb_value(callback: Callable[[CEB], Any]) -> Option:
    """Hand the CEB instance to ``callback`` while options are applied.

    Used by tests to observe a run from the outside.
    """
    return _CEBValue(callback)


def build_config(ceb: CEB, options: Iterable[Option]) -> CEBConfig:
    """Apply ``options`` in order and freeze the result.

    The first option that raises aborts the build; later options are never
    applied.
    """
    builder = ConfigBuilder()
    for option in options:
        option.apply(ceb, builder)
    return builder.build()
