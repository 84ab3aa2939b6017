"""
ceb.features - Optional entrypoint feature subsystems

init_features() is called once per run, before the child starts, unless
the entrypoint is disabled. It registers this instance with the control
plane and starts the URL agent, if one was configured.

The URL agent runs as a background task held by URLAgentGuard. The guard
keeps at most one agent task alive; starting a new one cancels the old one
first.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import httpx

from ceb.config import CEBConfig
from ceb.exceptions import FeatureInitError

if TYPE_CHECKING:
    from ceb.supervisor import CEB

logger = logging.getLogger(__name__)

# (ceb, cfg, is_retry) -> None
FeatureInitializer = Callable[["CEB", CEBConfig, bool], Awaitable[None]]


class URLAgentGuard:
    """Lock-protected slot holding the single live URL agent task."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._lock = threading.Lock()
        self._task: asyncio.Task[None] | None = None
        self._logger = log or logger

    @property
    def task(self) -> asyncio.Task[None] | None:
        with self._lock:
            return self._task

    def start(self, coro: Awaitable[None]) -> asyncio.Task[None]:
        """Run ``coro`` as the URL agent, cancelling any agent already live."""
        task = asyncio.ensure_future(coro)
        task.add_done_callback(self._report)

        with self._lock:
            previous, self._task = self._task, task
        if previous is not None and not previous.done():
            self._logger.info("Replacing running URL agent")
            previous.cancel()
        return task

    def cancel(self) -> asyncio.Task[None] | None:
        """Cancel the live URL agent, if any, and empty the slot."""
        with self._lock:
            task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        return task

    async def stop(self) -> None:
        """Cancel the live URL agent and wait for it to finish."""
        task = self.cancel()
        if task is None:
            return
        # Outcome is reported by _report.
        await asyncio.wait([task])

    def _report(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("URL agent exited with error", exc_info=exc)


async def init_features(ceb: CEB, cfg: CEBConfig, is_retry: bool) -> None:
    """Start the entrypoint feature set.

    Args:
        ceb: The running entrypoint.
        cfg: Resolved configuration.
        is_retry: True when re-initializing after a lost server connection.

    Raises:
        FeatureInitError: If the control plane rejects the instance.
    """
    if ceb.client is None:
        ceb.logger.info("No control plane connection, entrypoint features disabled")
        return

    ceb.logger.debug("Initializing entrypoint features", extra={"retry": is_retry})

    try:
        await ceb.client.register_instance(ceb.id, ceb.deployment_id, cfg.exec_args)
    except httpx.HTTPError as e:
        raise FeatureInitError(f"failed to register instance: {e}") from e

    if cfg.url_agent is not None:
        ceb.start_url_agent(cfg.url_agent(cfg.url_service_port))
