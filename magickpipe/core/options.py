"""Per-conversion option record.

Caller overrides are merged over a default record key by key. A key the
caller supplies always wins, even when its value is ``False``, ``0`` or
``None``; a key the caller leaves out keeps its default.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from magickpipe.config.constants import DEFAULT_OPTIONS
from magickpipe.exceptions import InvalidInputError

_BYTES_TYPES = (bytes, bytearray, memoryview)


class ConversionOptions(Mapping[str, Any]):
    """Immutable, merged option set for one conversion.

    Unknown option names are kept and can be read back, but only the names
    the command builder knows about ever reach the engine.

    Example:
        >>> options = ConversionOptions({"width": 0}, target_format="JPEG")
        >>> options["width"], options["resize_mode"]
        (0, 'crop')
    """

    __slots__ = ("_values",)

    def __init__(
        self,
        overrides: Mapping[str, Any] | None = None,
        /,
        *,
        defaults: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        merged = dict(DEFAULT_OPTIONS if defaults is None else defaults)
        if overrides:
            merged.update(overrides)
        merged.update(kwargs)
        self._values: Mapping[str, Any] = MappingProxyType(merged)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        shown = {
            key: (f"<{len(value)} bytes>" if isinstance(value, _BYTES_TYPES) else value)
            for key, value in self._values.items()
        }
        return f"ConversionOptions({shown!r})"

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_values"):
            raise AttributeError("ConversionOptions is immutable")
        object.__setattr__(self, name, value)

    def replace(self, **changes: Any) -> ConversionOptions:
        """Return a copy with ``changes`` merged over the current values."""
        return ConversionOptions(changes, defaults=self._values)

    def validate_source(self) -> bytes:
        """Return the source payload as ``bytes``.

        Raises:
            InvalidInputError: If ``source_bytes`` is missing or not bytes-like
        """
        source = self._values.get("source_bytes")
        if not isinstance(source, _BYTES_TYPES):
            raise InvalidInputError()
        return bytes(source)
