"""viewspace exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ViewspaceError(Exception):
    """Base exception for viewspace errors."""


class NamespaceError(ViewspaceError):
    """Raised when a views namespace cannot be registered.

    Attributes:
        prefix: The template prefix of the rejected namespace.
        root: The root directory of the rejected namespace.
        layout: The layout name that could not be found, if that was the cause.
    """

    def __init__(
        self,
        message: str,
        *,
        prefix: str = "",
        root: Path | None = None,
        layout: str | None = None,
    ) -> None:
        """Initialize with error message and registration context."""
        super().__init__(message)
        self.prefix: str = prefix
        self.root: Path | None = root
        self.layout: str | None = layout


class NotFoundError(ViewspaceError, LookupError):
    """Raised when no registered namespace holds the requested template.

    Attributes:
        target: The namespaced template name that was looked up.
    """

    def __init__(self, message: str, *, target: str) -> None:
        """Initialize with error message and the missing target."""
        super().__init__(message)
        self.target: str = target


class HelperError(ViewspaceError):
    """Raised when a dynamic views helper fails.

    Also raised when merged ``_json_`` helper data cannot be serialised. The
    underlying exception is chained as ``__cause__``.

    Attributes:
        pattern: The url pattern the failing helper was registered under.
    """

    def __init__(self, message: str, *, pattern: str) -> None:
        """Initialize with error message and the helper's pattern."""
        super().__init__(message)
        self.pattern: str = pattern


class PartialError(ViewspaceError):
    """Raised when a partial template fails to render.

    Attributes:
        name: Dotted name of the partial within its tree (e.g. ``nav.main``).
        path: Template file of the partial.
    """

    def __init__(self, message: str, *, name: str, path: Path) -> None:
        """Initialize with error message and partial context."""
        super().__init__(message)
        self.name: str = name
        self.path: Path = path


class EngineError(ViewspaceError):
    """Raised when the configured template engine is not available.

    Attributes:
        engine: The engine name that was requested.
    """

    def __init__(self, message: str, *, engine: str) -> None:
        """Initialize with error message and engine name."""
        super().__init__(message)
        self.engine: str = engine
