"""Exception hierarchy for driverconf."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class DriverConfigError(Exception):
    """Base exception for all driverconf errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(DriverConfigError):
    """Configuration input is malformed or cannot be resolved."""


class ReservedProfileNameError(ConfigurationError):
    """A secondary profile was declared with the reserved default name."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Profile name {name!r} is reserved for the default profile",
            hint="Put default values at the root of the tree, or pick another name.",
        )
        self.name = name


class OptionNotDefinedError(DriverConfigError, KeyError):
    """No value resolves for the requested option."""

    def __init__(self, path: str, profile: str) -> None:
        super().__init__(
            f"Missing option {path!r} in profile {profile!r}",
            hint="Use is_defined() or a get_*_if_defined() helper for optional values.",
        )
        self.path = path
        self.profile = profile

    # KeyError quotes its argument; keep the plain message.
    __str__ = Exception.__str__


class KindMismatchError(DriverConfigError, TypeError):
    """The stored value cannot be read as the requested kind."""

    def __init__(self, path: str, expected: str, actual: object) -> None:
        super().__init__(
            f"Option {path!r} expected {expected}, got {type(actual).__name__}: "
            f"{actual!r}"
        )
        self.path = path
        self.expected = expected
        self.actual = actual


class ProfileNotFoundError(DriverConfigError, KeyError):
    """A profile name was requested that the configuration does not declare."""

    def __init__(self, name: str, available: frozenset[str] | None = None) -> None:
        hint = None
        if available:
            hint = f"Available profiles: {', '.join(sorted(available))}"
        super().__init__(f"Profile {name!r} not found", hint=hint)
        self.name = name

    __str__ = Exception.__str__


class ReloadError(DriverConfigError):
    """A resolution pass failed; the previous generation stays live."""

    def __init__(
        self, message: str, *, hint: str | None = None, generation: int = 0
    ) -> None:
        super().__init__(message, hint=hint)
        #: Generation still being served after the failure.
        self.generation = generation


def walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)


def first_hint(exc: BaseException) -> str | None:
    """Return the first actionable hint found along the exception chain."""
    for link in walk_exception_chain(exc):
        hint = getattr(link, "hint", None)
        if hint:
            return str(hint)
    return None
