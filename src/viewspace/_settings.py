# pyright: reportAny=false, reportExplicitAny=false
"""Engine-wide default settings."""

import json
import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "VIEWSPACE_"

# Variables that configure logging rather than rendering
_LOGGING_ENV_KEYS = frozenset({"debug", "log_level"})


class ViewsSettings(BaseModel):
    """Defaults applied to every render.

    Unknown keys are kept and become template data available to every view.
    """

    model_config = ConfigDict(extra="allow")

    layout: str | Literal[False] = Field(
        default="layout", description="Layout view wrapping rendered views"
    )
    ext: str = Field(default="hbs", min_length=1, description="Template extension")
    engine: str = Field(
        default="handlebars", min_length=1, description="Template engine name"
    )
    silent: bool = Field(default=False, description="Suppress ViewEngine.log output")


def parse_string_value(value: str) -> Any:
    """Parse a string value with automatic type inference.

    Precedence:
    1. Boolean: true/false (case-insensitive)
    2. Integer: parseable as int (no decimal)
    3. Float: parseable as float (with decimal)
    4. JSON array/object: starts with [ or {
    5. String: fallback

    Examples:
        >>> parse_string_value("false")
        False
        >>> parse_string_value("42")
        42
        >>> parse_string_value('{"a": 1}')
        {'a': 1}
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    if "." not in value:
        try:
            return int(value)
        except ValueError:
            pass
    else:
        try:
            return float(value)
        except ValueError:
            pass

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Parse environment variables into settings values.

    ``VIEWSPACE_EXT=j2`` becomes ``{"ext": "j2"}``. Logging variables
    (``VIEWSPACE_DEBUG``, ``VIEWSPACE_LOG_LEVEL``) are skipped.

    Args:
        prefix: Environment variable prefix.
        environ: Environment to read. Defaults to ``os.environ``.

    Returns:
        Parsed values keyed by lowercase setting name.
    """
    if environ is None:
        environ = os.environ

    result: dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(prefix):
            continue
        name = key[len(prefix) :].lower()
        if not name or name in _LOGGING_ENV_KEYS:
            continue
        result[name] = parse_string_value(value)
    return result


def load_settings(
    options: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ViewsSettings:
    """Build settings from the environment, overridden by explicit options.

    Raises:
        pydantic.ValidationError: If a known setting has an invalid value.
    """
    values = parse_env_vars(environ=environ)
    if options:
        values.update(options)
    return ViewsSettings.model_validate(values)
