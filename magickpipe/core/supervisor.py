"""Process-wide registry of live engine processes.

A single ``atexit`` hook kills whatever is still registered when the
interpreter shuts down, so that no engine outlives its host. Runs register
their child after spawning and deregister it during teardown.
"""

from __future__ import annotations

import atexit
import threading
from functools import lru_cache
from typing import TYPE_CHECKING

from magickpipe.utils.logging import get_logger

if TYPE_CHECKING:
    from asyncio.subprocess import Process

log = get_logger(__name__)


class ChildSupervisor:
    """Tracks live child processes and kills them on interpreter exit."""

    def __init__(self) -> None:
        self._children: set[Process] = set()
        self._lock = threading.Lock()
        self._hooked = False

    def __len__(self) -> int:
        return len(self._children)

    def __contains__(self, process: object) -> bool:
        return process in self._children

    def register(self, process: Process) -> None:
        """Track ``process``; installs the exit hook on first use."""
        with self._lock:
            self._children.add(process)
            if not self._hooked:
                atexit.register(self.kill_all)
                self._hooked = True

    def unregister(self, process: Process) -> None:
        """Stop tracking ``process``. Unknown processes are ignored."""
        with self._lock:
            self._children.discard(process)

    def kill_all(self) -> int:
        """Kill every tracked process that is still running.

        Returns:
            Number of processes signalled
        """
        with self._lock:
            children = list(self._children)
            self._children.clear()

        killed = 0
        for process in children:
            if process.returncode is not None:
                continue
            try:
                process.kill()
            except ProcessLookupError:
                # Exited between the returncode check and the signal
                continue
            killed += 1

        if killed:
            log.debug("Killed orphaned engine processes", count=killed)
        return killed


@lru_cache
def get_supervisor() -> ChildSupervisor:
    """Get the process-wide supervisor."""
    return ChildSupervisor()
