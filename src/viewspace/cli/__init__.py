"""The viewspace command line."""

from ._app import ExitCode, app, create_app, main

__all__ = ["ExitCode", "app", "create_app", "main"]
