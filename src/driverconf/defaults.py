"""Optional reads: typed getters that fall back to a caller default.

Built only on ``Profile.is_defined`` and the typed getters, so a value of the
wrong kind still raises ``KindMismatchError`` rather than quietly returning
the fallback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from driverconf.values import to_nanos

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import timedelta

    from driverconf.options import Option, OptionRef
    from driverconf.profile import Profile

T = TypeVar("T")


def _if_defined(
    profile: Profile,
    option: OptionRef,
    getter: Callable[[OptionRef], T],
    default: T,
) -> T:
    if not profile.is_defined(option):
        return default
    return getter(option)


def get_if_defined(profile: Profile, option: Option, default: Any = None) -> Any:
    """Read *option* as its declared kind, or return *default*."""
    return _if_defined(profile, option, profile.get, default)


def get_bool_if_defined(
    profile: Profile, option: OptionRef, default: bool | None = None
) -> bool | None:
    return _if_defined(profile, option, profile.get_bool, default)


def get_int_if_defined(
    profile: Profile, option: OptionRef, default: int | None = None
) -> int | None:
    return _if_defined(profile, option, profile.get_int, default)


def get_long_if_defined(
    profile: Profile, option: OptionRef, default: int | None = None
) -> int | None:
    return _if_defined(profile, option, profile.get_long, default)


def get_double_if_defined(
    profile: Profile, option: OptionRef, default: float | None = None
) -> float | None:
    return _if_defined(profile, option, profile.get_double, default)


def get_string_if_defined(
    profile: Profile, option: OptionRef, default: str | None = None
) -> str | None:
    return _if_defined(profile, option, profile.get_string, default)


def get_bytes_if_defined(
    profile: Profile, option: OptionRef, default: int | None = None
) -> int | None:
    return _if_defined(profile, option, profile.get_bytes, default)


def get_duration_if_defined(
    profile: Profile, option: OptionRef, default: timedelta | None = None
) -> timedelta | None:
    return _if_defined(profile, option, profile.get_duration, default)


def get_duration_nanos_if_defined(
    profile: Profile, option: OptionRef, default: int | None = None
) -> int | None:
    """Duration as integer nanoseconds, for APIs that take raw counts."""
    if not profile.is_defined(option):
        return default
    return to_nanos(profile.get_duration(option))


def get_bool_list_if_defined(
    profile: Profile, option: OptionRef, default: list[bool] | None = None
) -> list[bool] | None:
    return _if_defined(profile, option, profile.get_bool_list, default)


def get_int_list_if_defined(
    profile: Profile, option: OptionRef, default: list[int] | None = None
) -> list[int] | None:
    return _if_defined(profile, option, profile.get_int_list, default)


def get_long_list_if_defined(
    profile: Profile, option: OptionRef, default: list[int] | None = None
) -> list[int] | None:
    return _if_defined(profile, option, profile.get_long_list, default)


def get_double_list_if_defined(
    profile: Profile, option: OptionRef, default: list[float] | None = None
) -> list[float] | None:
    return _if_defined(profile, option, profile.get_double_list, default)


def get_string_list_if_defined(
    profile: Profile, option: OptionRef, default: list[str] | None = None
) -> list[str] | None:
    return _if_defined(profile, option, profile.get_string_list, default)


def get_bytes_list_if_defined(
    profile: Profile, option: OptionRef, default: list[int] | None = None
) -> list[int] | None:
    return _if_defined(profile, option, profile.get_bytes_list, default)


def get_duration_list_if_defined(
    profile: Profile, option: OptionRef, default: list[timedelta] | None = None
) -> list[timedelta] | None:
    return _if_defined(profile, option, profile.get_duration_list, default)


def get_string_map_if_defined(
    profile: Profile, option: OptionRef, default: dict[str, str] | None = None
) -> dict[str, str] | None:
    return _if_defined(profile, option, profile.get_string_map, default)
