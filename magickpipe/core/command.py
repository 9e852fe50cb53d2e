"""Translate a ConversionOptions record into an engine invocation.

The engine reads its arguments in order: the origin handle describes the
input, attribute flags and the resize clause are processing instructions
applied in sequence, and the destination handle describes the output.
Nothing here touches the filesystem or spawns anything.
"""

from __future__ import annotations

import re
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from magickpipe.config.constants import (
    ATTRIBUTES,
    DEFAULT_RESIZE_MODE,
    RESIZE_CROP,
    RESIZE_FILL,
    RESIZE_FIT,
    STREAM_NAME,
)

_TRAILING_DIGITS = re.compile(r"\d*$")

RESIZE_TEMPLATES = {
    RESIZE_FIT: "-resize {geometry}",
    RESIZE_FILL: "-resize {geometry}!",
    # Scale to cover the box, then cut it out from the top-left corner
    RESIZE_CROP: "-resize {geometry}^ -crop {geometry}+0+0!",
}


@dataclass(frozen=True)
class CommandInvocation:
    """Ordered argument list for one engine run."""

    origin: str
    attributes: tuple[str, ...]
    resize: str | None
    destination: str

    @property
    def tokens(self) -> list[str]:
        """Arguments with the resize clause kept as a single token."""
        tokens = [self.origin, *self.attributes]
        if self.resize:
            tokens.append(self.resize)
        tokens.append(self.destination)
        return tokens

    @property
    def argv(self) -> list[str]:
        """Arguments as handed to the OS, one engine word per entry."""
        argv = [self.origin, *self.attributes]
        if self.resize:
            argv.extend(self.resize.split(" "))
        argv.append(self.destination)
        return argv

    def command_line(self, executable: str) -> str:
        """Shell-quoted command line, for logs and dry runs."""
        return shlex.join([executable, *self.argv])


def is_set(value: Any) -> bool:
    """Whether an option value counts as present.

    Truthy values count, and so does numeric zero. ``False`` does not.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        # NaN is the only number that is not set
        return value == value
    return bool(value)


def _stringify(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def create_occurrence(format: str | None = None, name: str | None = None) -> str:
    """Build a format handle such as ``PNG:-``.

    Args:
        format: Optional format tag; without it the engine sniffs the data
        name: File name, defaults to ``-`` (the adjacent pipe)
    """
    parts = []
    if format:
        parts.append(format)
    parts.append(name or STREAM_NAME)
    return ":".join(parts)


def flag_name(attribute: str) -> str:
    """Engine flag for an attribute, e.g. ``alpha2`` -> ``-alpha``."""
    return f"-{_TRAILING_DIGITS.sub('', attribute, count=1)}"


def attribute_tokens(options: Mapping[str, Any]) -> tuple[str, ...]:
    tokens: list[str] = []
    for attribute in ATTRIBUTES:
        value = options.get(attribute)
        if not is_set(value):
            continue
        tokens.append(flag_name(attribute))
        if not isinstance(value, bool):
            tokens.append(_stringify(value))
    return tuple(tokens)


def geometry(options: Mapping[str, Any]) -> str:
    """Geometry string ``<width>[x<height>]``; empty when neither is set."""
    width = options.get("width")
    height = options.get("height")

    size = [_stringify(width) if is_set(width) else ""]
    if is_set(height):
        size.append(_stringify(height))
    return "x".join(size)


def resize_clause(options: Mapping[str, Any]) -> str | None:
    """Resize instruction(s) for the configured policy, if any.

    Unknown policies fall back to ``crop``.
    """
    mode = options.get("resize_mode")
    geom = geometry(options)
    if not mode or not geom:
        return None

    template = RESIZE_TEMPLATES.get(mode, RESIZE_TEMPLATES[DEFAULT_RESIZE_MODE])
    return template.format(geometry=geom)


def compose_command(options: Mapping[str, Any]) -> CommandInvocation:
    """Build the engine invocation for ``options``.

    Source and target are always the process pipes: stdin is read as
    ``<source_format>:-`` and stdout written as ``<target_format>:-``.
    """
    return CommandInvocation(
        origin=create_occurrence(options.get("source_format")),
        attributes=attribute_tokens(options),
        resize=resize_clause(options),
        destination=create_occurrence(options.get("target_format")),
    )
