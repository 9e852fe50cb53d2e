"""Core conversion module for magickpipe."""

from magickpipe.core.command import (
    CommandInvocation,
    compose_command,
    create_occurrence,
    geometry,
    resize_clause,
)
from magickpipe.core.converter import Converter, convert, convert_sync
from magickpipe.core.options import ConversionOptions
from magickpipe.core.run import ConversionRun, RunState
from magickpipe.core.sinks import (
    BufferSink,
    FileSink,
    PathSink,
    Sink,
    StreamWriterSink,
    as_sink,
)
from magickpipe.core.supervisor import ChildSupervisor, get_supervisor

__all__ = [
    # Options and command
    "ConversionOptions",
    "CommandInvocation",
    "compose_command",
    "create_occurrence",
    "geometry",
    "resize_clause",
    # Orchestration
    "Converter",
    "ConversionRun",
    "RunState",
    "convert",
    "convert_sync",
    # Sinks
    "Sink",
    "BufferSink",
    "FileSink",
    "PathSink",
    "StreamWriterSink",
    "as_sink",
    # Supervisor
    "ChildSupervisor",
    "get_supervisor",
]
