# pyright: reportAny=false, reportExplicitAny=false
"""Template engine table and the bundled engine adapters.

An engine is an async callable ``(template_path, data) -> str``. The engine
for a render is looked up by the ``engine`` config key.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import anyio

from viewspace.exceptions import EngineError

if TYPE_CHECKING:
    from jinja2 import Environment, Template

TemplateEngine = Callable[[Path, Mapping[str, Any]], Awaitable[str]]


@dataclass(slots=True, frozen=True)
class EnvironmentConfig:
    """Configuration for the Jinja2 Environment.

    Attributes:
        autoescape: Enable autoescaping. Off by default so layouts can embed
            the rendered body and partials without ``|safe``.
        trim_blocks: Remove first newline after a block tag.
        lstrip_blocks: Strip leading whitespace before block tags.
        keep_trailing_newline: Preserve trailing newline in templates.
    """

    autoescape: bool = False
    trim_blocks: bool = False
    lstrip_blocks: bool = False
    keep_trailing_newline: bool = False


def create_environment(config: EnvironmentConfig | None = None) -> Environment:
    """Create a Jinja2 Environment for view templates."""
    from jinja2 import Environment  # noqa: PLC0415

    if config is None:
        config = EnvironmentConfig()

    return Environment(
        autoescape=config.autoescape,  # noqa: S701
        trim_blocks=config.trim_blocks,
        lstrip_blocks=config.lstrip_blocks,
        keep_trailing_newline=config.keep_trailing_newline,
    )


@lru_cache(maxsize=1)
def _default_environment() -> Environment:
    return create_environment()


@lru_cache(maxsize=256)
def _compile_jinja2(source: str) -> Template:
    return _default_environment().from_string(source)


@lru_cache(maxsize=256)
def _compile_handlebars(source: str) -> Callable[..., Any]:
    from pybars import Compiler  # noqa: PLC0415

    return Compiler().compile(source)


async def _read_template(template_path: Path) -> str:
    return await anyio.Path(template_path).read_text(encoding="utf-8")


async def render_handlebars(template_path: Path, data: Mapping[str, Any]) -> str:
    """Render a Handlebars template file with pybars3.

    Args:
        template_path: Path to the template file.
        data: Flattened template data.

    Returns:
        Rendered text.
    """
    template = _compile_handlebars(await _read_template(template_path))
    return str(template(dict(data)))


async def render_jinja2(template_path: Path, data: Mapping[str, Any]) -> str:
    """Render a Jinja2 template file.

    Args:
        template_path: Path to the template file.
        data: Flattened template data.

    Returns:
        Rendered text.
    """
    template = _compile_jinja2(await _read_template(template_path))
    return template.render(dict(data))


DEFAULT_ENGINES: Mapping[str, TemplateEngine] = MappingProxyType(
    {
        "handlebars": render_handlebars,
        "hbs": render_handlebars,
        "jinja2": render_jinja2,
        "j2": render_jinja2,
    }
)


def get_engine(engines: Mapping[str, TemplateEngine], name: object) -> TemplateEngine:
    """Look up an engine by name.

    Raises:
        EngineError: If no engine is registered under ``name``.
    """
    engine = engines.get(str(name))
    if engine is None:
        msg = f"No template engine registered as {name!r}"
        raise EngineError(msg, engine=str(name))
    return engine
