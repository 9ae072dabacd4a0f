"""Option values: storage normalization and strict typed reads.

Values are stored untyped (bool, int, float, str, timedelta, tuples and
read-only mappings of those) and given a type only when read. Reads never
parse strings and never drop information: a value that does not fit the
requested kind exactly raises ``KindMismatchError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Final, TypeAlias

from driverconf.errors import ConfigurationError, KindMismatchError
from driverconf.options import OptionKind


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


#: Tombstone: an explicit "unset" that hides lower-priority values for a path.
UNSET: Final = _Unset.UNSET

Scalar: TypeAlias = bool | int | float | str | timedelta
OptionValue: TypeAlias = Scalar | tuple[Any, ...] | Mapping[str, Any]

INT32_MIN: Final[int] = -(2**31)
INT32_MAX: Final[int] = 2**31 - 1
INT64_MIN: Final[int] = -(2**63)
INT64_MAX: Final[int] = 2**63 - 1


def freeze_value(value: Any, path: str = "<value>") -> OptionValue | _Unset:
    """Normalize a raw value into its immutable stored form.

    ``None`` maps to ``UNSET``. Lists become tuples and mappings become
    read-only mappings with sorted keys; a dotted key nests one map per
    segment, so every stored leaf is reachable by its dotted path. Anything
    outside the closed value set raises ``ConfigurationError``.
    """
    if value is None or value is UNSET:
        return UNSET
    if isinstance(value, (bool, float, str, timedelta)):
        return value
    if isinstance(value, int):
        if not INT64_MIN <= value <= INT64_MAX:
            raise ConfigurationError(
                f"Value for {path!r} does not fit in 64 bits: {value}"
            )
        return value
    if isinstance(value, (list, tuple)):
        items = []
        for i, item in enumerate(value):
            frozen = freeze_value(item, f"{path}[{i}]")
            if frozen is UNSET:
                raise ConfigurationError(f"List {path!r} contains a null at index {i}")
            items.append(frozen)
        return tuple(items)
    if isinstance(value, Mapping):
        nested = _nest_dotted_keys(value, path)
        out: dict[str, Any] = {}
        for key in sorted(nested, key=str):
            if not isinstance(key, str) or not key:
                raise ConfigurationError(
                    f"Map {path!r} has a non-string or empty key: {key!r}"
                )
            out[key] = freeze_value(nested[key], f"{path}.{key}")
        return MappingProxyType(out)
    raise ConfigurationError(
        f"Unsupported value type for {path!r}: {type(value).__name__}",
        hint="Values are bool, int, float, str, timedelta, or lists/maps of those.",
    )


def _nest_dotted_keys(mapping: Mapping[Any, Any], path: str) -> Mapping[Any, Any]:
    """Rewrite ``{"a.b": v}`` as ``{"a": {"b": v}}``, one segment per level."""
    if not any(isinstance(key, str) and "." in key for key in mapping):
        return mapping
    out: dict[Any, Any] = {}
    for key in sorted(mapping, key=str):
        value = mapping[key]
        if isinstance(key, str) and "." in key:
            key, _, rest = key.partition(".")
            value = {rest: value}
        out[key] = _combine(out[key], value, f"{path}.{key}") if key in out else value
    return out


def _combine(first: Any, second: Any, path: str) -> dict[Any, Any]:
    if not (isinstance(first, Mapping) and isinstance(second, Mapping)):
        raise ConfigurationError(
            f"Map {path!r} is given more than one value",
            hint="Write each option once, either as a dotted key or as a nested map.",
        )
    out = dict(first)
    for key, value in second.items():
        out[key] = _combine(out[key], value, f"{path}.{key}") if key in out else value
    return out


def hashable(value: Any) -> Any:
    """Return an order-independent, hashable stand-in for a stored value.

    Leaves are tagged with their type so ``True``, ``1`` and ``1.0`` stay
    distinct.
    """
    if isinstance(value, Mapping):
        return frozenset((k, hashable(v)) for k, v in value.items())
    if isinstance(value, tuple):
        return tuple(hashable(v) for v in value)
    return (type(value).__name__, value)


def _is_plain_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def read_scalar(kind: OptionKind, value: Any, path: str) -> Any:
    """Read one scalar as *kind*, or raise ``KindMismatchError``."""
    match kind:
        case OptionKind.BOOLEAN:
            if isinstance(value, bool):
                return value
        case OptionKind.INT:
            if _is_plain_int(value) and INT32_MIN <= value <= INT32_MAX:
                return value
        case OptionKind.LONG | OptionKind.BYTES:
            if _is_plain_int(value) and INT64_MIN <= value <= INT64_MAX:
                return value
        case OptionKind.DOUBLE:
            if isinstance(value, float):
                return value
            # ints widen to float only when exactly representable
            if _is_plain_int(value) and float(value) == value:
                return float(value)
        case OptionKind.STRING:
            if isinstance(value, str):
                return value
        case OptionKind.DURATION:
            if isinstance(value, timedelta):
                return value
            if _is_plain_int(value):
                # bare numbers are milliseconds
                try:
                    return timedelta(milliseconds=value)
                except OverflowError:
                    pass
        case _:
            raise ValueError(f"{kind} is not a scalar kind")
    raise KindMismatchError(path, kind.value, value)


def read_value(kind: OptionKind, value: Any, path: str) -> Any:
    """Read a stored value as *kind*, returning a fresh Python object."""
    if kind is OptionKind.STRING_MAP:
        if not isinstance(value, Mapping):
            raise KindMismatchError(path, kind.value, value)
        out: dict[str, str] = {}
        for key, leaf in flatten_mapping(value):
            out[key] = read_scalar(OptionKind.STRING, leaf, f"{path}.{key}")
        return out
    if kind.is_list:
        if not isinstance(value, (tuple, list)):
            raise KindMismatchError(path, kind.value, value)
        element = kind.element
        return [read_scalar(element, v, f"{path}[{i}]") for i, v in enumerate(value)]
    if isinstance(value, (Mapping, tuple, list)):
        raise KindMismatchError(path, kind.value, value)
    return read_scalar(kind, value, path)


def flatten_mapping(
    mapping: Mapping[str, Any], prefix: str = ""
) -> list[tuple[str, Any]]:
    """Flatten nested mappings into sorted ``(dotted key, leaf)`` pairs."""
    out: list[tuple[str, Any]] = []
    for key in sorted(mapping):
        value = mapping[key]
        full = f"{prefix}.{key}" if prefix else key
        if isinstance(value, Mapping):
            out.extend(flatten_mapping(value, full))
        else:
            out.append((full, value))
    return out


def to_nanos(value: timedelta) -> int:
    """Exact integer nanoseconds of a timedelta."""
    return (
        (value.days * 86_400 + value.seconds) * 1_000_000_000
        + value.microseconds * 1_000
    )
