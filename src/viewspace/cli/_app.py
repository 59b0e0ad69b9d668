"""The command-line interface for viewspace."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from enum import IntEnum
from pathlib import Path
from types import SimpleNamespace
from typing import Annotated, Any, Never

import anyio
from cyclopts import App, Parameter
from rich.console import Console
from rich.markup import escape

from viewspace._settings import parse_string_value
from viewspace._views import create_registry
from viewspace.exceptions import NamespaceError, NotFoundError, ViewspaceError
from viewspace.integrations import BufferedResponse


class ExitCode(IntEnum):
    """Exit codes for viewspace CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    RENDER_ERROR = 2
    NOT_FOUND = 3


def set_nested_key(d: dict[str, Any], key_path: str, value: Any) -> None:  # pyright: ignore[reportExplicitAny]
    """Set a value at a dotted key path in a nested dictionary.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "meta.title", "Home")
        >>> d
        {'meta': {'title': 'Home'}}
    """
    parts = key_path.split(".")
    current = d

    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value


def parse_assignments(assignments: list[str]) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse ``key=value`` strings into template data.

    Raises:
        ValueError: If an assignment has no ``=`` or an empty key.
    """
    data: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key:
            msg = f"Expected key=value, got {assignment!r}"
            raise ValueError(msg)
        set_nested_key(data, key, parse_string_value(value))
    return data


def _exit(console: Console, message: str, code: ExitCode) -> Never:
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise SystemExit(code)


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="viewspace",
        help="Render namespaced views.",
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.command
    def render(  # pyright: ignore[reportUnusedFunction]
        root: Path,
        view: str,
        *,
        set_: Annotated[
            list[str] | None,
            Parameter(name="--set", help="Template data as key=value (repeatable)"),
        ] = None,
        layout: Annotated[
            bool, Parameter(help="Wrap the view in its layout", negative="--no-layout")
        ] = True,
        ext: Annotated[str | None, Parameter(help="Template extension")] = None,
        engine: Annotated[str | None, Parameter(help="Template engine name")] = None,
        url: Annotated[str, Parameter(help="Request path helpers match against")] = "/",
    ) -> None:
        """Render one view from a views directory and print it.

        Args:
            root: Views directory to register.
            view: View name, without extension.
            set_: Template data assignments.
            layout: Wrap the view in its layout.
            ext: Template extension.
            engine: Template engine name.
            url: Request path helpers and partials match against.
        """
        try:
            options = parse_assignments(set_ or [])
        except ValueError as e:
            _exit(error_console, str(e), ExitCode.LOAD_ERROR)

        defaults: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
        if ext is not None:
            defaults["ext"] = ext
        if engine is not None:
            defaults["engine"] = engine
        if not layout:
            options["layout"] = False

        try:
            views = create_registry(root, defaults)
        except NamespaceError as e:
            _exit(error_console, str(e), ExitCode.LOAD_ERROR)

        request = SimpleNamespace(url=url)
        response = BufferedResponse()
        try:
            _ = anyio.run(views.render, request, response, view, options)
        except NotFoundError as e:
            _exit(error_console, str(e), ExitCode.NOT_FOUND)
        except ViewspaceError as e:
            _exit(error_console, str(e), ExitCode.RENDER_ERROR)
        except Exception as e:  # noqa: BLE001
            _exit(error_console, f"{type(e).__name__}: {e}", ExitCode.RENDER_ERROR)

        console.print(response.body, markup=False, highlight=False, soft_wrap=True)

    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `viewspace` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    app()
