"""
ceb.client - Control plane client

The supervisor only needs a small slice of the control plane: a version
request to validate connectivity and instance registration for the feature
subsystem. Anything that implements ControlPlaneClient can be injected with
with_client(); otherwise an HTTP client is built from the configured server
address.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import httpx

from ceb.config import CEBConfig

logger = logging.getLogger(__name__)


class ControlPlaneClient(Protocol):
    """Capabilities the entrypoint uses from the control plane."""

    async def get_version_info(self) -> dict[str, Any]: ...

    async def register_instance(
        self,
        instance_id: str,
        deployment_id: str,
        args: Sequence[str],
    ) -> dict[str, Any]: ...

    async def aclose(self) -> None: ...


class HTTPControlPlaneClient:
    """ControlPlaneClient backed by httpx."""

    # Default timeout for HTTP requests
    TIMEOUT = 30.0

    VERSION_PATH = "/v1/version"
    INSTANCES_PATH = "/v1/entrypoint/instances"

    def __init__(
        self,
        server_addr: str,
        *,
        tls: bool = False,
        tls_skip_verify: bool = False,
        invite_token: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        scheme = "https" if tls else "http"
        headers = {}
        if invite_token:
            headers["Authorization"] = f"Bearer {invite_token}"

        self.server_addr = server_addr
        self._client = httpx.AsyncClient(
            base_url=f"{scheme}://{server_addr}",
            headers=headers,
            verify=not tls_skip_verify,
            timeout=self.TIMEOUT,
            transport=transport,
        )

    async def get_version_info(self) -> dict[str, Any]:
        response = await self._client.get(self.VERSION_PATH)
        response.raise_for_status()
        return response.json()

    async def register_instance(
        self,
        instance_id: str,
        deployment_id: str,
        args: Sequence[str],
    ) -> dict[str, Any]:
        response = await self._client.post(
            self.INSTANCES_PATH,
            json={
                "instance_id": instance_id,
                "deployment_id": deployment_id,
                "args": list(args),
            },
        )
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()


async def connect(
    cfg: CEBConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HTTPControlPlaneClient:
    """Build a client for ``cfg.server_addr`` and verify it answers.

    The client is closed before any error propagates.

    Raises:
        httpx.HTTPError: If the server cannot be reached or rejects the request.
        ValueError: If the version response is not a JSON object.
    """
    client = HTTPControlPlaneClient(
        cfg.server_addr,
        tls=cfg.server_tls,
        tls_skip_verify=cfg.server_tls_skip_verify,
        invite_token=cfg.invite_token,
        transport=transport,
    )
    try:
        info = await client.get_version_info()
        if not isinstance(info, dict):
            raise ValueError(f"unexpected version response from control plane: {info!r}")
    except Exception:
        await client.aclose()
        raise

    logger.info(
        "Connected to control plane",
        extra={"server_addr": cfg.server_addr, "server_version": info.get("version")},
    )
    return client
