"""Custom exceptions for magickpipe."""


class MagickPipeError(Exception):
    """Base exception class for magickpipe."""

    pass


class InvalidInputError(MagickPipeError):
    """Source payload is missing or is not bytes-like."""

    def __init__(self, message: str = "the field `source_bytes` is required and must be bytes") -> None:
        super().__init__(message)


class ProcessError(MagickPipeError):
    """The engine could not be spawned or one of its streams failed."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class ConversionTimeoutError(ProcessError):
    """The conversion did not settle within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Conversion timed out after {timeout}s")


class EngineError(MagickPipeError):
    """The engine wrote to its diagnostic stream."""

    def __init__(self, diagnostics: str) -> None:
        self.diagnostics = diagnostics
        super().__init__(diagnostics)


class SinkError(MagickPipeError):
    """A fan-out destination failed while receiving output."""

    def __init__(self, index: int, cause: BaseException) -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"Destination #{index} failed: {cause}")


class ConversionCancelledError(MagickPipeError):
    """The conversion was cancelled by the caller."""

    def __init__(self, message: str = "Conversion cancelled") -> None:
        super().__init__(message)


class ConfigurationError(MagickPipeError):
    """Configuration error."""

    pass
