"""Destinations for fan-out conversions.

A sink is anything with ``async write(data)`` and ``async close()``. The
converter calls ``close()`` once the engine's output has been fully
delivered; a sink counts as complete when ``close()`` returns. An exception
from either method is reported as that sink's failure.
"""

from __future__ import annotations

import asyncio
import inspect
import io
import os
from pathlib import Path
from typing import Any, BinaryIO, Protocol

import anyio


class Sink(Protocol):
    """Async byte destination."""

    async def write(self, data: bytes) -> None: ...

    async def close(self) -> None: ...


class BufferSink:
    """Collects output in memory."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self.closed = False

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise ValueError("write to closed BufferSink")
        self._buffer.extend(data)

    async def close(self) -> None:
        self.closed = True

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class FileSink:
    """Writes to a binary file object in a worker thread.

    The file belongs to the caller: it is flushed on completion and only
    closed when ``close_file`` is set.
    """

    def __init__(self, fp: BinaryIO, close_file: bool = False) -> None:
        self.fp = fp
        self.close_file = close_file

    async def write(self, data: bytes) -> None:
        await anyio.to_thread.run_sync(self.fp.write, data)

    async def close(self) -> None:
        await anyio.to_thread.run_sync(self.fp.flush)
        if self.close_file:
            self.fp.close()


class PathSink:
    """Writes to a file path, opened on first write."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._file: Any = None

    async def _ensure_open(self) -> Any:
        if self._file is None:
            self._file = await anyio.open_file(self.path, "wb")
        return self._file

    async def write(self, data: bytes) -> None:
        f = await self._ensure_open()
        await f.write(data)

    async def close(self) -> None:
        # An engine that wrote nothing still leaves an empty file behind
        f = await self._ensure_open()
        await f.aclose()

    async def abort(self) -> None:
        """Close the file without creating it; a partial file is left as is."""
        if self._file is not None and not self._file.closed:
            await self._file.aclose()


class StreamWriterSink:
    """Forwards output to an asyncio ``StreamWriter`` (socket, pipe)."""

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self.writer = writer

    async def write(self, data: bytes) -> None:
        self.writer.write(data)
        await self.writer.drain()

    async def close(self) -> None:
        self.writer.close()
        await self.writer.wait_closed()


def as_sink(target: Any) -> Sink:
    """Coerce ``target`` into a Sink.

    Accepts sinks, ``asyncio.StreamWriter`` objects, filesystem paths and
    binary file objects.

    Raises:
        TypeError: If ``target`` cannot receive bytes
    """
    if isinstance(target, asyncio.StreamWriter):
        return StreamWriterSink(target)
    if isinstance(target, (str, os.PathLike)):
        return PathSink(target)

    write = getattr(target, "write", None)
    if inspect.iscoroutinefunction(write) and inspect.iscoroutinefunction(
        getattr(target, "close", None)
    ):
        return target
    if isinstance(target, io.TextIOBase):
        raise TypeError("text streams cannot receive image bytes; open the file in binary mode")
    if callable(write):
        return FileSink(target)
    raise TypeError(f"Cannot use {type(target).__name__} as an output destination")
