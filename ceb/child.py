"""
ceb.child - Child Process Launcher

Prepares, starts and kills the wrapped application. Starting returns a
future that resolves exactly once with the process outcome: None for a
zero exit status, a ChildProcessExitError otherwise.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections.abc import Sequence

from ceb.exceptions import AbortedError, ChildProcessExitError

logger = logging.getLogger(__name__)


class ChildProcess:
    """Handle on the wrapped application process."""

    def __init__(self, executable: str, args: Sequence[str], log: logging.Logger | None = None) -> None:
        self.executable = executable
        self.args = list(args)
        self.process: asyncio.subprocess.Process | None = None
        self._logger = log or logger
        self._exit: asyncio.Future[ChildProcessExitError | None] | None = None
        self._waiter: asyncio.Task[None] | None = None

    @classmethod
    def prepare(cls, args: Sequence[str], log: logging.Logger | None = None) -> ChildProcess:
        """Describe the process to run without starting it.

        A non-absolute executable is resolved against PATH.

        Raises:
            AbortedError: If no command was given or the executable cannot be found.
        """
        if not args:
            raise AbortedError("no command configured for the child process")

        name = args[0]
        executable = shutil.which(name)
        if executable is None:
            raise AbortedError(f"executable not found or not executable: {name}")

        return cls(os.path.abspath(executable), args, log=log)

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None

    async def start(self) -> asyncio.Future[ChildProcessExitError | None]:
        """Start the process and return its one-shot exit future.

        A spawn failure does not raise here; it resolves the future with a
        ChildProcessExitError, the same way a non-zero exit does.
        """
        if self._exit is not None:
            raise RuntimeError("child process already started")

        loop = asyncio.get_running_loop()
        self._exit = loop.create_future()

        try:
            self.process = await asyncio.create_subprocess_exec(self.executable, *self.args[1:])
        except (OSError, ValueError) as e:
            self._logger.error(
                "Failed to start child process",
                extra={"executable": self.executable, "error": str(e)},
            )
            self._exit.set_result(ChildProcessExitError(f"failed to start child process: {e}"))
            return self._exit

        self._logger.info(
            "Child process started",
            extra={"executable": self.executable, "pid": self.process.pid},
        )
        self._waiter = asyncio.create_task(self._wait(self.process, self._exit))
        return self._exit

    async def _wait(
        self,
        process: asyncio.subprocess.Process,
        exit_future: asyncio.Future[ChildProcessExitError | None],
    ) -> None:
        returncode = await process.wait()
        self._logger.info(
            "Child process exited",
            extra={"pid": process.pid, "returncode": returncode},
        )

        result = None
        if returncode != 0:
            result = ChildProcessExitError(
                f"child process exited with status {returncode}",
                returncode=returncode,
            )
        if not exit_future.done():
            exit_future.set_result(result)

    def kill(self) -> bool:
        """Send SIGKILL if the process is still running.

        Safe to call while the process is exiting on its own. Returns True
        if a signal was delivered.
        """
        process = self.process
        if process is None or process.returncode is not None:
            return False
        try:
            process.kill()
        except ProcessLookupError:
            # Already exited
            return False
        return True
