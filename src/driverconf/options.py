"""Option identifiers: a dotted path plus the kind of value it holds."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from driverconf.errors import ConfigurationError


class OptionKind(str, Enum):
    """Declared value kind of an option."""

    BOOLEAN = "boolean"
    INT = "int"
    LONG = "long"
    DOUBLE = "double"
    STRING = "string"
    DURATION = "duration"
    BYTES = "bytes"
    BOOLEAN_LIST = "boolean_list"
    INT_LIST = "int_list"
    LONG_LIST = "long_list"
    DOUBLE_LIST = "double_list"
    STRING_LIST = "string_list"
    DURATION_LIST = "duration_list"
    BYTES_LIST = "bytes_list"
    STRING_MAP = "string_map"

    @property
    def is_list(self) -> bool:
        return self.value.endswith("_list")

    @property
    def element(self) -> OptionKind:
        """Scalar kind of list elements (or of map values for STRING_MAP)."""
        if self is OptionKind.STRING_MAP:
            return OptionKind.STRING
        if self.is_list:
            return OptionKind(self.value.removesuffix("_list"))
        return self


@dataclass(frozen=True)
class Option:
    """Stable key naming one configurable setting.

    Equality and hashing use the path only, so two catalogs declaring the same
    path address the same entry.
    """

    path: str
    kind: OptionKind = field(compare=False)

    def __post_init__(self) -> None:
        split_path(self.path)

    def __str__(self) -> str:
        return self.path


OptionRef = Option | str


def path_of(ref: OptionRef) -> str:
    """Return the dotted path of an option or raw path string."""
    if isinstance(ref, Option):
        return ref.path
    if isinstance(ref, str):
        split_path(ref)
        return ref
    raise ConfigurationError(
        f"Expected an Option or a dotted path, got {type(ref).__name__}"
    )


def split_path(path: str) -> tuple[str, ...]:
    """Split a dotted path into its segments, rejecting empty segments."""
    if not isinstance(path, str) or not path:
        raise ConfigurationError(
            f"Invalid option path {path!r}",
            hint="Paths are non-empty dotted strings such as 'basic.request.timeout'.",
        )
    segments = tuple(path.split("."))
    if any(not s or s != s.strip() for s in segments):
        raise ConfigurationError(
            f"Invalid option path {path!r}: empty or padded segment",
            hint="Paths are non-empty dotted strings such as 'basic.request.timeout'.",
        )
    return segments
