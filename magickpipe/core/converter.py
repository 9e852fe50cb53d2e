"""Run ImageMagick over stdin/stdout.

Each conversion spawns one engine process, writes the source payload to its
stdin and closes it, then either buffers stdout or duplicates it to a set of
sinks. Three sources can settle the run, in any order:

- stdout reaching EOF (success) or failing (ProcessError)
- any byte on stderr (EngineError; diagnostics are never informational)
- the spawn itself failing (ProcessError)

The first one wins. Once settled, the process is torn down: killed at once
after a failure, given a grace period to exit after a success.
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

import anyio

from magickpipe.config.settings import MagickPipeSettings, get_settings
from magickpipe.core.command import CommandInvocation, compose_command
from magickpipe.core.options import ConversionOptions
from magickpipe.core.run import ConversionRun
from magickpipe.core.sinks import PathSink, Sink, as_sink
from magickpipe.core.supervisor import get_supervisor
from magickpipe.exceptions import (
    ConversionCancelledError,
    ConversionTimeoutError,
    EngineError,
    ProcessError,
    SinkError,
)
from magickpipe.utils.logging import get_logger

if TYPE_CHECKING:
    from asyncio.subprocess import Process

log = get_logger(__name__)

StdoutConsumer = Callable[[asyncio.StreamReader, ConversionRun], Awaitable[None]]


class Converter:
    """Converts one image payload with the engine.

    Options are merged over the defaults once, at construction; the same
    instance can run any number of conversions, concurrently or not.

    Example:
        converter = Converter(source_bytes=png, source_format="PNG",
                              target_format="JPEG", width=200, resize_mode="fit")
        jpeg = await converter.proceed()
    """

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        /,
        *,
        settings: MagickPipeSettings | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the converter.

        Args:
            options: Option overrides (see ConversionOptions)
            settings: Settings to use instead of the cached global ones
            timeout: Seconds before a run is aborted; defaults to settings.timeout
            **kwargs: More option overrides, applied after ``options``
        """
        self.settings = settings or get_settings()
        self.options = ConversionOptions(
            options, defaults=self.settings.option_defaults(), **kwargs
        )
        self.timeout = timeout if timeout is not None else self.settings.timeout
        self._runs: set[ConversionRun] = set()

    @property
    def executable(self) -> str:
        return self.options["executable"]

    @property
    def command(self) -> CommandInvocation:
        """Engine invocation for the current options."""
        return compose_command(self.options)

    @property
    def active_runs(self) -> int:
        return len(self._runs)

    async def proceed(self) -> bytes:
        """Run the conversion and return the engine's complete output.

        Returns after the engine has exited. An engine that keeps running once
        its output has ended is given ``exit_grace_period`` seconds, then killed.

        Raises:
            InvalidInputError: If ``source_bytes`` is missing (nothing is spawned)
            ProcessError: If the engine cannot be spawned or a stream fails
            EngineError: If the engine writes anything to stderr
        """
        source = self.options.validate_source()
        chunks: list[bytes] = []

        async def collect(stdout: asyncio.StreamReader, run: ConversionRun) -> None:
            while True:
                chunk = await stdout.read(self.settings.chunk_size)
                if not chunk:
                    break
                chunks.append(chunk)
            run.succeed(b"".join(chunks))

        return await self._execute(source, collect)

    async def pipe(self, sinks: Any) -> None:
        """Run the conversion, duplicating the engine's output to ``sinks``.

        Like ``proceed``, returns only after the engine has exited. Files opened
        for path destinations are closed when the run fails.

        Args:
            sinks: One destination or a list of them; anything ``as_sink``
                accepts. Each sink is closed once the output is complete.

        Raises:
            InvalidInputError: If ``source_bytes`` is missing (nothing is spawned)
            SinkError: If a destination fails; other destinations are abandoned
            ProcessError: If the engine cannot be spawned or a stream fails
            EngineError: If the engine writes anything to stderr
        """
        source = self.options.validate_source()

        targets = [as_sink(s) for s in (sinks if isinstance(sinks, (list, tuple)) else [sinks])]
        if not targets:
            raise ValueError("pipe() needs at least one destination")

        await self._execute(source, functools.partial(self._fan_out, targets))

    def cancel(self) -> int:
        """Abort every conversion this converter is running.

        Returns:
            Number of conversions cancelled
        """
        cancelled = 0
        for run in list(self._runs):
            if run.fail(ConversionCancelledError()):
                cancelled += 1
        return cancelled

    async def _execute(self, source: bytes, consume_stdout: StdoutConsumer) -> Any:
        invocation = compose_command(self.options)
        executable = self.executable
        supervisor = get_supervisor()

        run = ConversionRun()
        self._runs.add(run)
        started = time.perf_counter()

        log.debug("Spawning engine", command=invocation.command_line(executable))
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *invocation.argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except asyncio.CancelledError:
            self._runs.discard(run)
            raise
        except (OSError, ValueError) as e:
            self._runs.discard(run)
            log.error("Failed to spawn engine", executable=executable, error=str(e))
            raise ProcessError(f"Failed to spawn {executable}: {e}", cause=e) from e

        run.start(process)
        supervisor.register(process)

        assert process.stdin is not None
        assert process.stdout is not None
        assert process.stderr is not None
        tasks = [
            asyncio.create_task(self._feed(process.stdin, source)),
            asyncio.create_task(
                self._guard(run, "stderr", self._watch_diagnostics, process.stderr, run)
            ),
            asyncio.create_task(self._guard(run, "stdout", consume_stdout, process.stdout, run)),
        ]

        try:
            if self.timeout is None:
                return await run.wait()
            try:
                return await asyncio.wait_for(run.wait(), self.timeout)
            except asyncio.TimeoutError:
                run.fail(ConversionTimeoutError(self.timeout))
                return await run.wait()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            try:
                await self._reap(process, run)
            finally:
                supervisor.unregister(process)
                self._runs.discard(run)

            elapsed = round(time.perf_counter() - started, 3)
            if run.failed:
                log.warning(
                    "Conversion failed",
                    error_type=type(run.error).__name__,
                    error=str(run.error),
                    returncode=process.returncode,
                    elapsed=elapsed,
                )
            elif run.settled:
                log.debug("Conversion finished", returncode=process.returncode, elapsed=elapsed)

    async def _feed(self, stdin: asyncio.StreamWriter, source: bytes) -> None:
        """Write the payload to stdin and close it."""
        try:
            stdin.write(source)
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            # The engine stopped reading; stderr or stdout decides the outcome
            log.debug("Engine closed stdin early", error=str(e))
        finally:
            stdin.close()

    async def _guard(
        self,
        run: ConversionRun,
        stream: str,
        func: Callable[..., Awaitable[None]],
        *args: Any,
    ) -> None:
        """Turn a transport failure on ``stream`` into a ProcessError."""
        try:
            await func(*args)
        except Exception as e:
            run.fail(ProcessError(f"Engine {stream} failed: {e}", cause=e))

    async def _watch_diagnostics(self, stderr: asyncio.StreamReader, run: ConversionRun) -> None:
        chunk = await stderr.read(self.settings.chunk_size)
        if chunk:
            run.fail(EngineError(chunk.decode("utf-8", errors="replace")))

    async def _fan_out(
        self, sinks: list[Sink], stdout: asyncio.StreamReader, run: ConversionRun
    ) -> None:
        """Duplicate stdout to every sink, in arrival order.

        Each sink drains its own queue. With ``max_pending_chunks`` at 0 the
        queues are unbounded and a slow sink never holds back the others
        or the engine.
        """
        maxsize = self.settings.fanout.max_pending_chunks
        queues: list[asyncio.Queue[bytes]] = [asyncio.Queue(maxsize=maxsize) for _ in sinks]
        pumps = [
            asyncio.create_task(self._drain_into(index, sink, queue, run))
            for index, (sink, queue) in enumerate(zip(sinks, queues))
        ]

        try:
            while True:
                chunk = await stdout.read(self.settings.chunk_size)
                # b"" doubles as the end-of-output marker
                for queue in queues:
                    await queue.put(chunk)
                if not chunk:
                    break

            delivered = await asyncio.gather(*pumps)
            if all(delivered):
                run.succeed(None)
        finally:
            for pump in pumps:
                pump.cancel()
            await asyncio.gather(*pumps, return_exceptions=True)
            if run.failed or not run.settled:
                await _abort_files(sinks)

    async def _drain_into(
        self, index: int, sink: Sink, queue: asyncio.Queue[bytes], run: ConversionRun
    ) -> bool:
        try:
            while True:
                chunk = await queue.get()
                if not chunk:
                    await sink.close()
                    return True
                await sink.write(chunk)
        except Exception as e:
            run.fail(SinkError(index, e))
            return False

    async def _reap(self, process: Process, run: ConversionRun) -> None:
        """Make sure the engine is gone and its pipes are drained."""
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()

        if process.returncode is None and (run.failed or not run.settled):
            _kill(process)

        async def wait_closed() -> None:
            # Unread output would keep the pipes, and so wait(), open
            await asyncio.gather(
                _discard(process.stdout),
                _discard(process.stderr),
                process.wait(),
            )

        try:
            await asyncio.wait_for(wait_closed(), self.settings.exit_grace_period)
        except asyncio.TimeoutError:
            log.warning("Engine did not exit after its output ended", pid=process.pid)
            _kill(process)
            await wait_closed()


def _kill(process: Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass


async def _abort_files(sinks: list[Sink]) -> None:
    """Close files opened for path destinations of a failed run."""
    for sink in sinks:
        if not isinstance(sink, PathSink):
            continue
        try:
            await sink.abort()
        except OSError as e:
            log.warning("Failed to close destination", path=str(sink.path), error=str(e))


async def _discard(stream: asyncio.StreamReader | None) -> None:
    if stream is None:
        return
    try:
        while await stream.read(64 * 1024):
            pass
    except Exception:
        # Already settled; late stream failures are dropped
        return


async def convert(options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> bytes:
    """Convert with a fresh Converter and return the output bytes."""
    converter = Converter(options, **kwargs)
    return await converter.proceed()


def convert_sync(options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> bytes:
    """Blocking variant of ``convert`` for code without an event loop."""
    return anyio.run(functools.partial(convert, options, **kwargs))

