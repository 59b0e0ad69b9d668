"""Filesystem access used for namespace validation and template lookup."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, final, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for the filesystem checks viewspace performs.

    Registration validation, template path verification and partial
    discovery all go through this interface, so tests can count or fake
    the calls.
    """

    def exists(self, path: Path) -> bool:
        """Return True if ``path`` exists."""
        ...

    def is_dir(self, path: Path) -> bool:
        """Return True if ``path`` is an existing directory."""
        ...

    def walk_files(self, directory: Path) -> Iterator[Path]:
        """Yield every file below ``directory`` as a path relative to it."""
        ...


@final
class LocalFileSystem:
    """FileSystem backed by pathlib.

    ``walk_files`` skips hidden files and directories, and files without an
    extension.
    """

    __slots__ = ()

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def walk_files(self, directory: Path) -> Iterator[Path]:
        for path in sorted(directory.rglob("*.*")):
            relative = path.relative_to(directory)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if path.is_file():
                yield relative
