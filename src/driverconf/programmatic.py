"""Typed ``with_*`` wrappers shared by builders and profiles.

Every wrapper checks and normalizes its argument for the declared kind, then
delegates to the single generic ``with_value``. Builders accumulate the entry
in place; profiles return a new derived profile instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Self

from driverconf.errors import ConfigurationError, KindMismatchError
from driverconf.options import OptionKind, path_of
from driverconf.values import UNSET, OptionValue, freeze_value, read_value

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import timedelta

    from driverconf.options import OptionRef


def normalize(kind: OptionKind, value: Any, path: str) -> OptionValue:
    """Check *value* against *kind* and return its stored form."""
    frozen = freeze_value(value, path)
    if frozen is UNSET:
        raise ConfigurationError(
            f"Typed setter for {path!r} got None",
            hint="Use without() to unset an option explicitly.",
        )
    try:
        typed = read_value(kind, frozen, path)
    except KindMismatchError as e:
        raise ConfigurationError(str(e)) from e
    return freeze_value(typed, path)  # type: ignore[return-value]


class ProgrammaticBuilder(ABC):
    """Mixin providing one typed setter per option kind."""

    @abstractmethod
    def with_value(self, path: OptionRef, value: Any) -> Self:
        """Bind *value* (``None`` or ``UNSET`` to unset) at *path*."""

    def without(self, option: OptionRef) -> Self:
        """Install a tombstone hiding lower-priority values for *option*."""
        return self.with_value(path_of(option), UNSET)

    def _with_kind(self, option: OptionRef, kind: OptionKind, value: Any) -> Self:
        path = path_of(option)
        return self.with_value(path, normalize(kind, value, path))

    def with_bool(self, option: OptionRef, value: bool) -> Self:
        return self._with_kind(option, OptionKind.BOOLEAN, value)

    def with_bool_list(self, option: OptionRef, value: Sequence[bool]) -> Self:
        return self._with_kind(option, OptionKind.BOOLEAN_LIST, value)

    def with_int(self, option: OptionRef, value: int) -> Self:
        return self._with_kind(option, OptionKind.INT, value)

    def with_int_list(self, option: OptionRef, value: Sequence[int]) -> Self:
        return self._with_kind(option, OptionKind.INT_LIST, value)

    def with_long(self, option: OptionRef, value: int) -> Self:
        return self._with_kind(option, OptionKind.LONG, value)

    def with_long_list(self, option: OptionRef, value: Sequence[int]) -> Self:
        return self._with_kind(option, OptionKind.LONG_LIST, value)

    def with_double(self, option: OptionRef, value: float) -> Self:
        return self._with_kind(option, OptionKind.DOUBLE, value)

    def with_double_list(self, option: OptionRef, value: Sequence[float]) -> Self:
        return self._with_kind(option, OptionKind.DOUBLE_LIST, value)

    def with_string(self, option: OptionRef, value: str) -> Self:
        return self._with_kind(option, OptionKind.STRING, value)

    def with_string_list(self, option: OptionRef, value: Sequence[str]) -> Self:
        return self._with_kind(option, OptionKind.STRING_LIST, value)

    def with_string_map(self, option: OptionRef, value: Mapping[str, str]) -> Self:
        return self._with_kind(option, OptionKind.STRING_MAP, value)

    def with_bytes(self, option: OptionRef, value: int) -> Self:
        return self._with_kind(option, OptionKind.BYTES, value)

    def with_bytes_list(self, option: OptionRef, value: Sequence[int]) -> Self:
        return self._with_kind(option, OptionKind.BYTES_LIST, value)

    def with_duration(self, option: OptionRef, value: timedelta) -> Self:
        return self._with_kind(option, OptionKind.DURATION, value)

    def with_duration_list(
        self, option: OptionRef, value: Sequence[timedelta]
    ) -> Self:
        return self._with_kind(option, OptionKind.DURATION_LIST, value)
