# pyright: reportAny=false, reportExplicitAny=false
"""Partials: directory trees of sub-templates rendered into template data."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, final

from viewspace._concurrency import gather
from viewspace._helpers import request_memo
from viewspace._logging import get_logger
from viewspace._patterns import (
    PatternLike,
    pattern_matches,
    request_path,
    stringify_pattern,
)
from viewspace.exceptions import PartialError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from viewspace._fs import FileSystem
    from viewspace._registry import PathResolver

    PartialRenderer = Callable[[Path, Mapping[str, Any]], Awaitable[str]]

logger = get_logger("viewspace.partials")


@dataclass(frozen=True, slots=True)
class PartialLeaf:
    """A single partial template file."""

    path: Path


@dataclass(slots=True)
class PartialBranch:
    """A directory of partials, keyed by file or directory name."""

    children: dict[str, PartialNode] = field(default_factory=dict)

    def add(self, relative: Path, path: Path) -> None:
        """Insert the file ``path`` at the position described by ``relative``.

        Intermediate directories become nested branches; the file name minus
        its extension becomes the leaf's key.
        """
        node = self
        for part in relative.parts[:-1]:
            child = node.children.get(part)
            if not isinstance(child, PartialBranch):
                child = PartialBranch()
                node.children[part] = child
            node = child
        node.children[relative.stem] = PartialLeaf(path)

    def leaves(self) -> int:
        """Count the partial files below this branch."""
        return sum(
            child.leaves() if isinstance(child, PartialBranch) else 1
            for child in self.children.values()
        )


PartialNode = PartialLeaf | PartialBranch


@final
class PartialTree:
    """Pattern-keyed partial trees, rendered once per request."""

    __slots__ = ("_fs", "_resolver", "_trees")

    def __init__(self, resolver: PathResolver, filesystem: FileSystem) -> None:
        self._resolver: PathResolver = resolver
        self._fs: FileSystem = filesystem
        self._trees: dict[str, PartialBranch] = {}

    @property
    def patterns(self) -> tuple[str, ...]:
        """Normalised patterns that have partials, in registration order."""
        return tuple(self._trees)

    def tree(self, pattern: PatternLike | None = None) -> PartialBranch | None:
        """Return the partial tree registered under ``pattern``."""
        return self._trees.get(stringify_pattern(pattern))

    def register(self, source: str, pattern: PatternLike | None = None) -> None:
        """Register a directory of partials.

        ``source`` is looked up through the registered namespaces. Every file
        below it is added to the tree for ``pattern``. A source that no
        namespace provides is ignored, since partials are optional.

        Args:
            source: Namespaced path to a directory of views.
            pattern: Only render for request paths matching this pattern.
                Defaults to every path.
        """
        key = stringify_pattern(pattern)
        tree = self._trees.setdefault(key, PartialBranch())

        directory = self._resolver.resolve_dir(source)
        if directory is None:
            logger.debug("partials_source_missing", source=source, pattern=key)
            return

        for relative in self._fs.walk_files(directory):
            tree.add(relative, directory / relative)
        logger.debug(
            "partials_registered",
            source=source,
            directory=str(directory),
            pattern=key,
            count=tree.leaves(),
        )

    async def resolve(
        self,
        request: Any,
        data: Mapping[str, Any],
        render: PartialRenderer,
    ) -> dict[str, Any]:
        """Render the partials that apply to a request.

        Runs at most once per request object; later calls return the same
        dictionary.

        Args:
            request: The request. Must expose ``url`` and accept attributes.
            data: Template data every partial is rendered with.
            render: Engine used to render each partial file.

        Returns:
            Rendered partials, nested like their source directories. When
            several patterns define a key, the first registered one wins.

        Raises:
            PartialError: If any partial fails to render.
        """
        memo = request_memo(request)
        if memo.partials is not None:
            return memo.partials

        path = request_path(str(request.url))
        trees = [
            tree
            for pattern, tree in self._trees.items()
            if tree.children and pattern_matches(pattern, path)
        ]

        results = await gather(
            [lambda t=tree: self._render_branch(t, data, render) for tree in trees]
        )

        merged: dict[str, Any] = {}
        for result in results:
            for key, value in result.items():
                _ = merged.setdefault(key, value)

        memo.partials = merged
        return merged

    async def _render_branch(
        self,
        branch: PartialBranch,
        data: Mapping[str, Any],
        render: PartialRenderer,
        parents: tuple[str, ...] = (),
    ) -> dict[str, Any]:
        names = list(branch.children)

        async def render_node(name: str) -> Any:
            node = branch.children[name]
            if isinstance(node, PartialBranch):
                return await self._render_branch(node, data, render, (*parents, name))
            try:
                return await render(node.path, data)
            except Exception as e:
                dotted = ".".join((*parents, name))
                msg = f"Partial {dotted!r} failed to render: {e}"
                raise PartialError(msg, name=dotted, path=node.path) from e

        rendered = await gather([lambda n=name: render_node(n) for name in names])
        return dict(zip(names, rendered, strict=True))
