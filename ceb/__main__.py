"""
ceb.__main__ - CLI entry point for the entrypoint supervisor

Usage:
    python -m ceb [--log-level LEVEL] -- <command> [args...]
"""

import argparse
import asyncio
import logging
import signal
import sys

from ceb.config import with_env_defaults, with_exec
from ceb.exceptions import CEBError, ChildProcessExitError
from ceb.settings import CEBSettings
from ceb.supervisor import run

logger = logging.getLogger("ceb")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ceb",
        description="Run an application as a supervised child process",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: $WAYPOINT_CEB_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command and arguments to run, optionally after --",
    )
    return parser


def resolve_command(args: argparse.Namespace) -> list[str]:
    """Return the child command line, without a leading "--" separator."""
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    return command


def exit_code_for(error: BaseException | None) -> int:
    """Map the outcome of a run to a process exit code."""
    if error is None:
        return 0
    if isinstance(error, ChildProcessExitError) and error.returncode is not None:
        # Negative return codes mean the child died from a signal.
        if error.returncode < 0:
            return 128 - error.returncode
        return error.returncode
    return 1


async def _main(command: list[str]) -> int:
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Received shutdown signal, stopping child process...")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _signal_handler)

    try:
        await run(stop_event, with_env_defaults(), with_exec(command), log=logger)
    except CEBError as e:
        if not isinstance(e, ChildProcessExitError):
            logger.error("Entrypoint failed: %s", e, extra={"code": e.code})
        return exit_code_for(e)
    return 0


def main() -> None:
    """Parse arguments and run the entrypoint."""
    parser = build_parser()
    args = parser.parse_args()

    command = resolve_command(args)
    if not command:
        parser.error("a command to run is required")

    log_level = args.log_level or CEBSettings().log_level.upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    sys.exit(asyncio.run(_main(command)))


if __name__ == "__main__":
    main()
