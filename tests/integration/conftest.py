from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from viewspace.cli import create_app


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def viewspace_cli(console: Console) -> Callable[..., int]:
    """Create CLI app for testing that returns the exit code.

    Output goes to stdout through ``console``; read it with ``capsys``.
    """

    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        """Run CLI app and return exit code (0 if no SystemExit)."""

        try:
            app(args)
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run
