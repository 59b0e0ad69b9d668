# pyright: reportAny=false, reportExplicitAny=false
"""Layered configuration with deep-merge reads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, final

if TYPE_CHECKING:
    from collections.abc import Iterator

_MISSING = object()


def copy_value(value: Any) -> Any:
    """Create a deep copy of a configuration value.

    Recursively copies mappings and lists so the returned structure is fully
    independent of the original. Mappings come back as plain dicts.

    Args:
        value: The value to copy.

    Returns:
        A deep copy of the value.
    """
    if isinstance(value, Mapping):
        return {k: copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    # Primitives are immutable, no copy needed
    return value


def deep_merge(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
) -> dict[str, Any]:
    """Deep merge two mappings into a new dictionary.

    Neither input is modified. Key order follows ``base`` first, then any keys
    only present in ``override``.

    Args:
        base: Lower precedence mapping.
        override: Higher precedence mapping.

    Returns:
        Merged dictionary.

    Merge rules:
        - Mappings are recursively merged
        - Lists are replaced entirely (no element-wise merge)
        - Scalars are replaced with the override value
        - Missing keys in override preserve base values
    """
    result: dict[str, Any] = {}

    for key, base_val in base.items():
        if key not in override:
            result[key] = copy_value(base_val)
            continue

        override_val = override[key]
        if isinstance(base_val, Mapping) and isinstance(override_val, Mapping):
            result[key] = deep_merge(base_val, override_val)
        else:
            # Type mismatch or non-mappings - override wins
            result[key] = copy_value(override_val)

    for key, override_val in override.items():
        if key not in base:
            result[key] = copy_value(override_val)

    return result


@final
class LayeredConfig:
    """An ordered stack of mapping layers.

    Layers are kept bottom to top. Reads resolve top-down, so the most
    recently pushed layer wins. Mapping values are merged key-by-key across
    every layer that defines them.

    Layers are copied when they enter the stack and are never edited in
    place afterwards; the only mutations are adding or removing a whole
    layer. Derive a per-request config with :meth:`clone` before pushing.

    Example:
        >>> config = LayeredConfig({"ext": "hbs", "meta": {"a": 1}})
        >>> config.push({"meta": {"b": 2}})
        >>> config.get("meta")
        {'a': 1, 'b': 2}
        >>> config.unshift({"ext": "j2", "engine": "jinja2"})
        >>> config.get("ext"), config.get("engine")
        ('hbs', 'jinja2')
    """

    __slots__ = ("_layers",)

    def __init__(self, *layers: Mapping[str, Any]) -> None:
        """Initialize the stack.

        Args:
            layers: Initial layers, lowest priority first.
        """
        self._layers: list[dict[str, Any]] = [copy_value(layer) for layer in layers]

    @property
    def layers(self) -> tuple[dict[str, Any], ...]:
        """Return copies of the layers, lowest priority first."""
        return tuple(copy_value(layer) for layer in self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    def __repr__(self) -> str:
        return f"LayeredConfig({', '.join(repr(layer) for layer in self._layers)})"

    def push(self, layer: Mapping[str, Any]) -> None:
        """Add a layer with the highest priority."""
        self._layers.append(copy_value(layer))

    def unshift(self, layer: Mapping[str, Any]) -> None:
        """Add a layer with the lowest priority."""
        self._layers.insert(0, copy_value(layer))

    def pop(self) -> dict[str, Any]:
        """Remove and return the highest priority layer.

        Raises:
            IndexError: If the stack is empty.
        """
        return self._layers.pop()

    def shift(self) -> dict[str, Any]:
        """Remove and return the lowest priority layer.

        Raises:
            IndexError: If the stack is empty.
        """
        return self._layers.pop(0)

    def _lookup(self, key: str) -> Any:
        found: list[Any] = []
        for layer in reversed(self._layers):
            if key not in layer:
                continue
            value = layer[key]
            if not isinstance(value, Mapping):
                if not found:
                    return copy_value(value)
                break
            found.append(value)

        if not found:
            return _MISSING

        merged: dict[str, Any] = {}
        for value in reversed(found):
            merged = deep_merge(merged, value)
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        """Read a key, merging mapping values across layers.

        A scalar or list value comes from the topmost layer that defines the
        key. A mapping value is merged across the contiguous run of layers
        (from the top) whose value for the key is a mapping.

        Args:
            key: The key to read.
            default: Value returned when no layer defines the key.

        Returns:
            A copy of the resolved value, or ``default``.
        """
        value = self._lookup(key)
        return default if value is _MISSING else value

    def __getitem__(self, key: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return any(key in layer for layer in self._layers)

    def keys(self) -> Iterator[str]:
        """Iterate over every defined key, bottom layer first."""
        seen: set[str] = set()
        for layer in self._layers:
            for key in layer:
                if key not in seen:
                    seen.add(key)
                    yield key

    def deep_merge(self) -> dict[str, Any]:
        """Flatten every layer into a fresh dictionary.

        Returns:
            A snapshot that shares no structure with the layers.
        """
        merged: dict[str, Any] = {}
        for layer in self._layers:
            merged = deep_merge(merged, layer)
        return merged

    def clone(self) -> LayeredConfig:
        """Return an independent copy of the whole stack."""
        return LayeredConfig(*self._layers)
