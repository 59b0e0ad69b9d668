# pyright: reportAny=false, reportExplicitAny=false
"""Views namespace registry and template path resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, final

from viewspace._layers import copy_value
from viewspace._logging import get_logger
from viewspace.exceptions import NamespaceError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from viewspace._fs import FileSystem
    from viewspace._layers import LayeredConfig

DEFAULT_LAYOUT = "layout"

logger = get_logger("viewspace.registry")


@dataclass(frozen=True, slots=True)
class Namespace:
    """A template prefix bound to a root directory.

    Attributes:
        prefix: Template name prefix, no trailing slash. Empty matches all.
        root: Absolute path of the directory holding the templates.
        options: Default options for every view in this namespace.
    """

    prefix: str
    root: Path
    options: dict[str, Any] = field(default_factory=dict)

    def matches(self, target: str) -> bool:
        """Check whether ``target`` falls under this namespace's prefix."""
        return target.startswith(self.prefix)

    def relative_name(self, target: str) -> str:
        """Strip the prefix and one separating slash from ``target``."""
        return target[len(self.prefix) :].removeprefix("/")


@dataclass(frozen=True, slots=True)
class Resolution:
    """A resolved template.

    Attributes:
        path: Absolute path to the template file.
        options: The namespace options in effect when it was resolved.
    """

    path: Path
    options: dict[str, Any]


@final
class NamespaceRegistry:
    """Append-only ordered list of views namespaces.

    Later registrations take precedence over earlier ones, which lets
    plugin-provided views override the application's own views.
    """

    __slots__ = ("_defaults", "_fs", "_namespaces", "_version")

    def __init__(self, filesystem: FileSystem, defaults: LayeredConfig) -> None:
        """Initialize an empty registry.

        Args:
            filesystem: Filesystem used to validate namespace roots and layouts.
            defaults: Engine-wide defaults, consulted for the fallback extension.
        """
        self._fs: FileSystem = filesystem
        self._defaults: LayeredConfig = defaults
        self._namespaces: list[Namespace] = []
        self._version: int = 0

    @property
    def version(self) -> int:
        """Counter bumped on every registration."""
        return self._version

    @property
    def default_ext(self) -> str:
        """Extension used when neither the caller nor a namespace sets one."""
        return str(self._defaults.get("ext", ""))

    def __len__(self) -> int:
        return len(self._namespaces)

    def __iter__(self) -> Iterator[Namespace]:
        return iter(self._namespaces)

    def __reversed__(self) -> Iterator[Namespace]:
        return reversed(self._namespaces)

    def register(
        self,
        root: str | Path,
        options: Mapping[str, Any] | None = None,
        *,
        prefix: str = "",
    ) -> Namespace:
        """Register a views namespace.

        Args:
            root: Directory containing the namespace's templates.
            options: Default options for the namespace's views, typically
                ``engine``, ``ext`` and ``layout``.
            prefix: Template name prefix, no trailing slash.

        Returns:
            The registered namespace.

        Raises:
            NamespaceError: If ``root`` is not a directory, or if a custom
                layout is configured but its template does not exist.
        """
        root_path = Path(root).expanduser().absolute()
        opts: dict[str, Any] = copy_value(options) if options else {}

        if not self._fs.is_dir(root_path):
            msg = f"Path does not exist for view namespace: {prefix!r} ({root_path})"
            raise NamespaceError(msg, prefix=prefix, root=root_path)

        layout = opts.get("layout")
        if layout:
            ext = opts.get("ext") or self.default_ext
            layout_path = root_path / f"{layout}.{ext}"
            if not self._fs.exists(layout_path):
                # The default layout is optional
                if layout != DEFAULT_LAYOUT:
                    msg = f"The layout does not exist ({layout})."
                    raise NamespaceError(
                        msg, prefix=prefix, root=root_path, layout=str(layout)
                    )
                opts["layout"] = False

        namespace = Namespace(prefix=prefix.rstrip("/"), root=root_path, options=opts)
        self._namespaces.append(namespace)
        self._version += 1
        logger.debug(
            "namespace_registered",
            prefix=namespace.prefix,
            root=str(root_path),
            position=len(self._namespaces) - 1,
        )
        return namespace


@final
class PathResolver:
    """Resolve namespaced template names to files.

    Both caches are dropped whenever the registry changes, since
    registration order decides which namespace wins.
    """

    __slots__ = ("_cache", "_cache_version", "_dir_cache", "_fs", "_registry")

    def __init__(self, registry: NamespaceRegistry, filesystem: FileSystem) -> None:
        self._registry: NamespaceRegistry = registry
        self._fs: FileSystem = filesystem
        self._cache: dict[str, Resolution] = {}
        self._dir_cache: dict[str, Path] = {}
        self._cache_version: int = registry.version

    def clear(self) -> None:
        """Drop every cached resolution."""
        self._cache.clear()
        self._dir_cache.clear()
        self._cache_version = self._registry.version

    def _sync(self) -> None:
        if self._cache_version != self._registry.version:
            self.clear()

    @staticmethod
    def _key(target: str, ext: str | None) -> str:
        return f"{target}:{ext}" if ext else target

    def cached(self, target: str, ext: str | None = None) -> Resolution | None:
        """Return the cached resolution for ``target``, without touching disk."""
        self._sync()
        hit = self._cache.get(self._key(target, ext))
        if hit is None:
            return None
        return Resolution(path=hit.path, options=copy_value(hit.options))

    def resolve(self, target: str, ext: str | None = None) -> Resolution:
        """Find the template file for ``target``.

        Namespaces are searched in reverse registration order. Results are
        cached under ``target``, or ``target:ext`` when ``ext`` is given.

        Args:
            target: Namespaced template name, without extension.
            ext: Explicit extension. Defaults to the namespace's ``ext``
                option, then the engine default.

        Returns:
            The resolved path and the owning namespace's options.

        Raises:
            NotFoundError: If no namespace holds a matching file.
        """
        hit = self.cached(target, ext)
        if hit is not None:
            return hit

        for namespace in reversed(self._registry):
            if not namespace.matches(target):
                continue
            suffix = ext or namespace.options.get("ext") or self._registry.default_ext
            full = namespace.root / f"{namespace.relative_name(target)}.{suffix}"
            if self._fs.exists(full):
                resolution = Resolution(
                    path=full, options=copy_value(namespace.options)
                )
                self._cache[self._key(target, ext)] = resolution
                logger.debug("template_resolved", target=target, path=str(full))
                return Resolution(path=full, options=copy_value(namespace.options))

        msg = f"No registered views matched the path: {target}"
        raise NotFoundError(msg, target=target)

    def resolve_dir(self, target: str) -> Path | None:
        """Find a views directory for ``target``.

        Args:
            target: Namespaced directory name.

        Returns:
            The absolute directory path, or None if no namespace has it.
        """
        self._sync()
        cached = self._dir_cache.get(target)
        if cached is not None:
            return cached

        for namespace in reversed(self._registry):
            if not namespace.matches(target):
                continue
            full = namespace.root / namespace.relative_name(target)
            if self._fs.is_dir(full):
                self._dir_cache[target] = full
                return full

        return None
