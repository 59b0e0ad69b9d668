r"""viewspace: namespaced view rendering.

Resolves template names across registered namespaces, layers defaults,
namespace options, helper data, partials and per-call options, then hands the
result to a pluggable template engine and wraps it in a layout.

Basic usage:
    from viewspace import create_registry

    views = create_registry("app/views")
    views.register("blog/views", {"ext": "j2", "engine": "jinja2"}, prefix="blog")

    # Static and dynamic helpers
    views.helper({"site": "Example"})
    views.helper(lambda request, response: {"user": request.user}, "/account")

    # In a request handler
    text = await views.render(request, response, "hello", {"name": "World"})

    # Status pages, with a plain-text fallback
    await views.render_status(request, response, 404)
"""

from ._engines import (
    DEFAULT_ENGINES,
    EnvironmentConfig,
    TemplateEngine,
    create_environment,
    render_handlebars,
    render_jinja2,
)
from ._fs import FileSystem, LocalFileSystem
from ._helpers import DynamicHelper, HelperEntry, HelperSet, RequestMemo, StaticHelper
from ._layers import LayeredConfig, copy_value, deep_merge
from ._logging import create_logger
from ._partials import PartialBranch, PartialLeaf, PartialNode, PartialTree
from ._registry import Namespace, NamespaceRegistry, PathResolver, Resolution
from ._settings import ViewsSettings, load_settings, parse_string_value
from ._views import (
    STATUS_MESSAGES,
    ViewEngine,
    ViewRequest,
    ViewResponse,
    create_registry,
)
from .exceptions import (
    EngineError,
    HelperError,
    NamespaceError,
    NotFoundError,
    PartialError,
    ViewspaceError,
)

__all__ = [
    "DEFAULT_ENGINES",
    "STATUS_MESSAGES",
    "DynamicHelper",
    "EngineError",
    "EnvironmentConfig",
    "FileSystem",
    "HelperEntry",
    "HelperError",
    "HelperSet",
    "LayeredConfig",
    "LocalFileSystem",
    "Namespace",
    "NamespaceError",
    "NamespaceRegistry",
    "NotFoundError",
    "PartialBranch",
    "PartialError",
    "PartialLeaf",
    "PartialNode",
    "PartialTree",
    "PathResolver",
    "RequestMemo",
    "Resolution",
    "StaticHelper",
    "TemplateEngine",
    "ViewEngine",
    "ViewRequest",
    "ViewResponse",
    "ViewsSettings",
    "ViewspaceError",
    "copy_value",
    "create_environment",
    "create_logger",
    "create_registry",
    "deep_merge",
    "load_settings",
    "parse_string_value",
    "render_handlebars",
    "render_jinja2",
]
