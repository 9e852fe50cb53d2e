"""magickpipe - drive ImageMagick over stdin/stdout from asyncio."""

__version__ = "0.3.0"

from magickpipe.core import (  # noqa: E402
    BufferSink,
    CommandInvocation,
    ConversionOptions,
    Converter,
    compose_command,
    convert,
    convert_sync,
)
from magickpipe.exceptions import (  # noqa: E402
    ConfigurationError,
    ConversionCancelledError,
    ConversionTimeoutError,
    EngineError,
    InvalidInputError,
    MagickPipeError,
    ProcessError,
    SinkError,
)

__all__ = [
    "__version__",
    # Core
    "Converter",
    "ConversionOptions",
    "CommandInvocation",
    "BufferSink",
    "compose_command",
    "convert",
    "convert_sync",
    # Errors
    "MagickPipeError",
    "InvalidInputError",
    "ProcessError",
    "ConversionTimeoutError",
    "EngineError",
    "SinkError",
    "ConversionCancelledError",
    "ConfigurationError",
]
