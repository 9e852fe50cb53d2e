"""Settlement state for a single conversion.

The engine process, its stdout and its stderr report independently and in
no particular order. Every handler funnels its outcome through
``ConversionRun.succeed`` or ``ConversionRun.fail``; the first call wins and
the rest are dropped.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from asyncio.subprocess import Process


class RunState(str, Enum):
    """Lifecycle of a conversion run."""

    IDLE = "idle"
    RUNNING = "running"
    SETTLED = "settled"


class ConversionRun:
    """One-shot settlement for a conversion.

    Must be created inside a running event loop. Never reused: a new run is
    created for every conversion.
    """

    def __init__(self) -> None:
        self.state = RunState.IDLE
        self.process: Process | None = None
        self.error: BaseException | None = None
        self._future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self.state is RunState.SETTLED

    @property
    def failed(self) -> bool:
        return self.error is not None

    def start(self, process: Process) -> None:
        """Attach the spawned process and mark the run as running.

        A run settled while the process was spawning (cancelled) stays
        settled; the caller is expected to tear the process down.
        """
        if self.process is not None:
            raise RuntimeError("Run already has a process attached")
        self.process = process
        if self.state is RunState.IDLE:
            self.state = RunState.RUNNING

    def succeed(self, result: Any = None) -> bool:
        """Settle with ``result``. Returns False if already settled."""
        if self.settled:
            return False
        self.state = RunState.SETTLED
        self._future.set_result(result)
        return True

    def fail(self, error: BaseException) -> bool:
        """Settle with ``error``. Returns False if already settled."""
        if self.settled:
            return False
        self.state = RunState.SETTLED
        self.error = error
        self._future.set_exception(error)
        return True

    async def wait(self) -> Any:
        """Wait for settlement; return the result or raise the error."""
        # Cancelling the waiter must not cancel the settlement
        return await asyncio.shield(self._future)
