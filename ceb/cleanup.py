"""
ceb.cleanup - Ordered teardown actions

Actions run in the order they were registered (first registered runs
first), exactly once, when the registry is closed. Callers rely on this
ordering to release a feature before or after the resource it depends on,
so it must not be reversed.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

CleanupAction = Callable[[], Awaitable[None] | None]


class CleanupRegistry:
    """FIFO list of teardown actions, executed once."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._actions: list[CleanupAction] = []
        self._closed = False
        self._logger = log or logger

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._actions)

    def register(self, action: CleanupAction) -> None:
        """Add ``action`` to run after every previously registered action."""
        if self._closed:
            self._logger.warning(
                "Cleanup registered after teardown, ignoring",
                extra={"action": getattr(action, "__qualname__", repr(action))},
            )
            return
        self._actions.append(action)

    async def close(self) -> None:
        """Run all registered actions in registration order.

        Only the first call does anything. An action that raises is logged
        and the remaining actions still run.
        """
        if self._closed:
            return
        self._closed = True

        actions, self._actions = self._actions, []
        for action in actions:
            try:
                result = action()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self._logger.error(
                    "Cleanup action failed",
                    exc_info=True,
                    extra={"action": getattr(action, "__qualname__", repr(action))},
                )
