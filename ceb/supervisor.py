"""
ceb.supervisor - Entrypoint supervisor

Runs the wrapped application as a child process:
1. Generates the instance ID
2. Applies configuration options in order
3. Prepares the child process (resolving the control plane client)
4. Initializes entrypoint features unless disabled
5. Starts the child and waits for either its exit or the stop event
6. Tears down every registered resource, in registration order
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from collections.abc import Awaitable

import httpx

from ceb.child import ChildProcess
from ceb.cleanup import CleanupAction, CleanupRegistry
from ceb.client import ControlPlaneClient, connect
from ceb.config import CEBConfig, Option, build_config
from ceb.exceptions import AbortedError, ChildProcessExitError
from ceb.features import FeatureInitializer, URLAgentGuard, init_features
from ceb.ids import IdGenerator, generate_id, new_instance_id
from ceb.version import get_version

logger = logging.getLogger(__name__)


class CEB:
    """State of a running entrypoint."""

    def __init__(
        self,
        instance_id: str,
        *,
        stop_event: asyncio.Event,
        log: logging.Logger | None = None,
    ) -> None:
        self._id = instance_id
        self.deployment_id = ""
        self.logger = log or logger
        self.stop_event = stop_event

        self.client: ControlPlaneClient | None = None
        self.child: ChildProcess | None = None
        self._exec_idx = itertools.count(1)

        self._cleanup = CleanupRegistry(self.logger)
        self._url_agent = URLAgentGuard(self.logger)
        # Registered first so the agent stops before the client it uses is closed.
        self.cleanup(self._url_agent.stop)

    @property
    def id(self) -> str:
        """Unique ID of this entrypoint instance."""
        return self._id

    @property
    def url_agent(self) -> URLAgentGuard:
        return self._url_agent

    def cleanup(self, action: CleanupAction) -> None:
        """Run ``action`` on close, after every action registered before it."""
        self._cleanup.register(action)

    async def close(self) -> None:
        """Release every resource created by the entrypoint. Runs once."""
        await self._cleanup.close()

    def next_exec_index(self) -> int:
        return next(self._exec_idx)

    def start_url_agent(self, coro: Awaitable[None]) -> asyncio.Task[None]:
        """Start ``coro`` as the URL agent, replacing any live agent."""
        return self._url_agent.start(coro)

    async def init_child(self, cfg: CEBConfig) -> None:
        """Resolve the control plane client and prepare the child process."""
        if not cfg.disable:
            await self._init_client(cfg)
        self.child = ChildProcess.prepare(cfg.exec_args, log=self.logger)

    async def _init_client(self, cfg: CEBConfig) -> None:
        if self.client is not None:
            return

        if not cfg.server_addr:
            if cfg.server_required:
                raise AbortedError("server connection required but no server address configured")
            return

        try:
            client = await connect(cfg)
        except (httpx.HTTPError, ValueError) as e:
            if cfg.server_required:
                raise
            self.logger.warning(
                "Control plane unreachable, continuing without it",
                extra={"server_addr": cfg.server_addr, "error": str(e)},
            )
            return

        self.client = client
        self.cleanup(client.aclose)

    async def exec_child(self) -> asyncio.Future[ChildProcessExitError | None]:
        """Start the prepared child process and return its exit future."""
        if self.child is None:
            raise RuntimeError("child process has not been prepared")

        self.logger.info(
            "Launching child process",
            extra={"exec_index": self.next_exec_index(), "exec_args": self.child.args},
        )
        return await self.child.start()

    async def wait_child(self, exit_future: asyncio.Future[ChildProcessExitError | None]) -> None:
        """Wait for the child to exit or for the stop event.

        On stop, the child is killed and its exit is still awaited before
        returning, so the child is never left running. Stopping is not an
        error.

        Raises:
            ChildProcessExitError: If the child exits on its own with a failure.
        """
        if self.child is None:
            raise RuntimeError("child process has not been prepared")

        stop_task = asyncio.create_task(self.stop_event.wait())
        try:
            done, _pending = await asyncio.wait(
                [exit_future, stop_task],
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            self.logger.info("Entrypoint task cancelled, stopping child process")
            self.child.kill()
            await asyncio.shield(exit_future)
            raise
        finally:
            stop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await stop_task

        if exit_future in done:
            result = exit_future.result()
            if result is not None:
                raise result
            return

        self.logger.info("Received cancellation request, gracefully exiting")
        self.child.kill()
        await exit_future


async def run(
    stop_event: asyncio.Event,
    *options: Option,
    log: logging.Logger | None = None,
    feature_init: FeatureInitializer = init_features,
    id_generator: IdGenerator = generate_id,
) -> None:
    """Run an entrypoint with the given options.

    Runs until the child exits or ``stop_event`` is set. When stopped, the
    child is killed and awaited, then all resources are cleaned up.

    Args:
        stop_event: Setting this event requests a graceful exit.
        *options: Configuration options, applied in order.
        log: Logger for this run. Defaults to the module logger.
        feature_init: Feature initializer, called once unless disabled.
        id_generator: Source of the unique instance ID.

    Raises:
        InternalError: If the instance ID cannot be generated.
        ConfigurationError: If an option is invalid.
        AbortedError: If the child process cannot be prepared.
        FeatureInitError: If feature initialization fails.
        ChildProcessExitError: If the child exits with a failure.
    """
    instance_id = new_instance_id(id_generator)

    ceb = CEB(instance_id, stop_event=stop_event, log=log)
    try:
        cfg = build_config(ceb, options)

        ceb.logger.info(
            "Entrypoint starting",
            extra={
                "deployment_id": ceb.deployment_id,
                "instance_id": ceb.id,
                "exec_args": list(cfg.exec_args),
            },
        )

        vsn = get_version()
        ceb.logger.info(
            "Entrypoint version",
            extra={
                "full_string": vsn.full_version_number(True),
                "version": vsn.version,
                "prerelease": vsn.prerelease,
                "metadata": vsn.metadata,
                "revision": vsn.revision,
            },
        )

        try:
            await ceb.init_child(cfg)
        except AbortedError:
            raise
        except Exception as e:
            raise AbortedError(f"failed to connect to server: {e}") from e

        if not cfg.disable:
            await feature_init(ceb, cfg, False)

        exit_future = await ceb.exec_child()
        await ceb.wait_child(exit_future)
    finally:
        await ceb.close()
