"""Configuration sources.

A source produces a fresh value tree on every ``fetch()`` and can tell whether
its content changed since the last fetch. Sources do no merging of their own
except ``LayeredSource``, which overlays other sources in priority order.
"""

from __future__ import annotations

from collections.abc import Mapping
import hashlib
import logging
from pathlib import Path
import tomllib
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from driverconf.errors import ConfigurationError
from driverconf.options import split_path
from driverconf.tree import EMPTY_TREE, ValueTree, expand, merge_layers

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


@runtime_checkable
class ConfigSource(Protocol):
    """Duck-typed protocol for value tree providers."""

    def fetch(self) -> ValueTree: ...  # noqa: D102
    def has_changed_since(self, generation: int) -> bool: ...  # noqa: D102


def _normalize(data: Mapping[str, Any], what: str) -> ValueTree:
    """Accept nested maps, dotted top-level keys, or a mix of both."""
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"{what} must produce a mapping, got {type(data).__name__}"
        )
    return expand(data)


class MappingSource:
    """Static tree held in memory.

    Top-level keys may be dotted paths (``{"basic.request.timeout": 500}``) or
    plain keys with nested maps; both spell the same tree.
    """

    def __init__(self, data: Mapping[str, Any] | None = None, *, name: str = "mapping"):
        self.name = name
        self._tree = _normalize(data or {}, name)

    def fetch(self) -> ValueTree:
        return self._tree

    def has_changed_since(self, generation: int) -> bool:
        # Content never changes; only a first resolution needs it.
        return generation < 1

    def __repr__(self) -> str:
        return f"MappingSource(name={self.name!r})"


class SupplierSource:
    """Calls a function for a fresh mapping on every fetch."""

    def __init__(
        self, supplier: Callable[[], Mapping[str, Any]], *, name: str = "supplier"
    ):
        self.name = name
        self._supplier = supplier

    def fetch(self) -> ValueTree:
        return _normalize(self._supplier(), self.name)

    def has_changed_since(self, generation: int) -> bool:
        return True

    def __repr__(self) -> str:
        return f"SupplierSource(name={self.name!r})"


class TomlFileSource:
    """Reads a TOML document, optionally narrowed to one of its tables.

    With ``table="tool.driverconf"`` the source can share a ``pyproject.toml``
    with other tools. Change detection compares a digest of the raw bytes
    against the bytes seen on the previous fetch.
    """

    def __init__(
        self, path: str | Path, *, table: str | None = None, required: bool = True
    ):
        self.path = Path(path)
        self.table = table
        self.required = required
        self._last_digest: str | None = None

    def _read_bytes(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read configuration file {self.path}: {e}"
            ) from e

    def fetch(self) -> ValueTree:
        raw = self._read_bytes()
        if raw is None:
            if self.required:
                raise ConfigurationError(
                    f"Configuration file not found: {self.path}",
                    hint="Create the file, or load it with required=False.",
                )
            log.debug("Optional configuration file %s is absent", self.path)
            self._last_digest = ""
            return EMPTY_TREE

        try:
            data = tomllib.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(
                f"Malformed configuration file {self.path}: {e}"
            ) from e

        tree = _extract_table(data, self.table)
        self._last_digest = hashlib.sha256(raw).hexdigest()
        log.debug("Read %d bytes from %s", len(raw), self.path)
        return _normalize(tree, str(self.path))

    def has_changed_since(self, generation: int) -> bool:
        if generation < 1 or self._last_digest is None:
            return True
        raw = self._read_bytes()
        digest = "" if raw is None else hashlib.sha256(raw).hexdigest()
        return digest != self._last_digest

    def __repr__(self) -> str:
        return f"TomlFileSource(path={str(self.path)!r}, table={self.table!r})"


def _extract_table(data: Mapping[str, Any], table: str | None) -> Mapping[str, Any]:
    """Narrow parsed TOML data to a dotted table, or return it whole."""
    if not table:
        return data
    node: Any = data
    for segment in split_path(table):
        if not isinstance(node, Mapping):
            raise ConfigurationError(f"TOML key {table!r} is not a table")
        node = node.get(segment, {})
    if not isinstance(node, Mapping):
        raise ConfigurationError(f"TOML key {table!r} is not a table")
    return node


class LayeredSource:
    """Overlay of several sources, given lowest priority first."""

    def __init__(self, *layers: ConfigSource):
        if not layers:
            raise ConfigurationError("LayeredSource needs at least one layer")
        self.layers: tuple[ConfigSource, ...] = layers

    def fetch(self) -> ValueTree:
        return merge_layers(layer.fetch() for layer in self.layers)

    def has_changed_since(self, generation: int) -> bool:
        return any(layer.has_changed_since(generation) for layer in self.layers)

    def __repr__(self) -> str:
        return f"LayeredSource({', '.join(map(repr, self.layers))})"


def as_source(value: ConfigSource | Mapping[str, Any]) -> ConfigSource:
    """Wrap plain mappings so callers can pass either form."""
    if isinstance(value, Mapping):
        return MappingSource(value)
    if isinstance(value, ConfigSource):
        return value
    raise ConfigurationError(
        f"Expected a ConfigSource or a mapping, got {type(value).__name__}"
    )
