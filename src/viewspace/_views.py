# pyright: reportAny=false, reportExplicitAny=false
"""The views registry: namespaces, helpers, partials and rendering."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, final, runtime_checkable

import anyio
import anyio.to_thread

from viewspace._engines import DEFAULT_ENGINES, get_engine
from viewspace._fs import LocalFileSystem
from viewspace._helpers import HelperSet
from viewspace._layers import LayeredConfig, copy_value
from viewspace._logging import get_logger
from viewspace._partials import PartialTree
from viewspace._registry import NamespaceRegistry, PathResolver
from viewspace._settings import load_settings
from viewspace.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from viewspace._engines import TemplateEngine
    from viewspace._fs import FileSystem
    from viewspace._helpers import HelperEntry, HelperFunc
    from viewspace._patterns import PatternLike
    from viewspace._registry import Namespace, Resolution

    RenderCallback = Callable[[Exception | None, str | None], object]
    RenderOptions = Mapping[str, Any] | str | RenderCallback | None

STATUS_MESSAGES: Mapping[int, str] = {
    403: "Access denied",
    404: "Page not found",
    500: "Server error",
}

DEFAULT_PARTIALS = "partials"


@runtime_checkable
class ViewRequest(Protocol):
    """What viewspace needs from a request.

    The request must also accept attribute assignment; resolved helper and
    partial data are memoised on it.
    """

    @property
    def url(self) -> Any:
        """The request url or request target."""
        ...


@runtime_checkable
class ViewResponse(Protocol):
    """What viewspace needs from a response."""

    status_code: int

    def write_head(self, status: int, headers: Mapping[str, str]) -> None:
        """Send the status line and headers."""
        ...

    def write(self, text: str) -> None:
        """Append text to the body."""
        ...

    def end(self, text: str | None = None) -> None:
        """Finish the response, optionally writing a last chunk."""
        ...


@final
class ViewEngine:
    """A views registry.

    Owns the engine-wide defaults, the namespace registry and its resolution
    cache, the registered helpers and the registered partials. Build one at
    startup, register namespaces, helpers and partials, then render from
    request handlers.

    Example:
        >>> views = create_registry("app/views")  # doctest: +SKIP
        >>> views.helper({"site": "Example"})  # doctest: +SKIP
        >>> await views.render(req, res, "hello", {"name": "Leo"})  # doctest: +SKIP
    """

    __slots__ = (
        "_engines",
        "_fs",
        "_logger",
        "conf",
        "helpers",
        "partial_tree",
        "registry",
        "resolver",
    )

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        engines: Mapping[str, TemplateEngine] | None = None,
        filesystem: FileSystem | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize an empty registry.

        Args:
            options: Engine-wide defaults, such as ``layout``, ``ext`` and
                ``engine``. Unknown keys become data for every template.
            engines: Extra template engines by name, merged over the
                bundled ones.
            filesystem: Filesystem used for every existence check.
            logger: Logger for registry events.
        """
        settings = load_settings(options)
        self.conf: LayeredConfig = LayeredConfig(settings.model_dump())
        self._fs: FileSystem = (
            filesystem if filesystem is not None else LocalFileSystem()
        )
        self._engines: dict[str, TemplateEngine] = {
            **DEFAULT_ENGINES,
            **(engines or {}),
        }
        self._logger: FilteringBoundLogger = logger or get_logger("viewspace")
        self.registry: NamespaceRegistry = NamespaceRegistry(self._fs, self.conf)
        self.resolver: PathResolver = PathResolver(self.registry, self._fs)
        self.helpers: HelperSet = HelperSet()
        self.partial_tree: PartialTree = PartialTree(self.resolver, self._fs)

    @property
    def engines(self) -> Mapping[str, TemplateEngine]:
        """Template engines by name."""
        return self._engines

    def log(self, event: str, *, level: str = "info", **fields: Any) -> None:
        """Log an event unless the ``silent`` option is set."""
        if self.conf.get("silent"):
            return
        getattr(self._logger, level)(event, **fields)

    # Registration

    def register(
        self,
        root: str | Path,
        options: Mapping[str, Any] | None = None,
        *,
        prefix: str = "",
    ) -> Namespace:
        """Register a views namespace.

        A views namespace associates a template prefix with a root directory
        and some default options. Application plugins can register their own
        namespaces to expose views the main app can render, or to override
        the app's views (later registrations win).

        Args:
            root: Directory of the views being registered.
            options: Default options for all the views in this directory,
                typically a custom engine and extension.
            prefix: Template name prefix, no trailing slash.

        Returns:
            The registered namespace.

        Raises:
            NamespaceError: If the directory or a custom layout is missing.
        """
        namespace = self.registry.register(root, options, prefix=prefix)
        self.partials(DEFAULT_PARTIALS)
        return namespace

    def helper(
        self,
        helper: Mapping[str, Any] | HelperFunc,
        pattern: PatternLike | None = None,
    ) -> HelperEntry:
        """Register a views helper.

        A helper is either template data merged into every matching render,
        or a function called with ``(request, response)`` that returns
        template data. Functions may be coroutine functions.

        Args:
            helper: Template data or a helper function.
            pattern: Only apply to request paths matching this string (full
                match) or regular expression.

        Returns:
            The stored helper entry.
        """
        return self.helpers.register(helper, pattern)

    def clear_helpers(self, pattern: PatternLike | None = None) -> None:
        """Clear the helpers of one pattern, or all helpers."""
        self.helpers.clear(pattern)

    def partials(self, source: str, pattern: PatternLike | None = None) -> None:
        """Register a directory of partials.

        Every file below ``source`` is rendered for matching requests and
        exposed as template data under its file name (extension stripped),
        nested by subdirectory.

        Args:
            source: Namespaced path to a directory of views.
            pattern: Only render for request paths matching this pattern.
        """
        self.partial_tree.register(source, pattern)

    # Lookup

    def find(self, target: str, ext: str | None = None) -> Resolution:
        """Find the template file for a namespaced view name.

        Raises:
            NotFoundError: If no registered namespace holds the view.
        """
        return self.resolver.resolve(target, ext)

    def find_dir(self, target: str) -> Path | None:
        """Find a views directory, or None."""
        return self.resolver.resolve_dir(target)

    # Rendering

    async def render(
        self,
        request: Any,
        response: Any,
        view: str,
        options: RenderOptions = None,
        callback: RenderCallback | None = None,
    ) -> str | None:
        """Render a view.

        Args:
            request: The current request.
            response: The current response.
            view: Namespaced path to a template, without extension.
            options: Template data and engine options. A string is used as
                ``{"content": options}``; a callable is used as ``callback``.
            callback: Called with ``(error, text)``. Errors never escape
                when a callback is given. The default callback writes the
                text to ``response`` as HTML and re-raises errors.

        Returns:
            The rendered text, or None if rendering failed.
        """
        if callable(options) and not isinstance(options, Mapping):
            callback, options = options, None
        if callback is None:
            callback = self._response_callback(response)

        try:
            text = await self._render(request, response, view, options)
        except Exception as e:
            await _invoke(callback, e, None)
            return None

        await _invoke(callback, None, text)
        return text

    async def _render(
        self,
        request: Any,
        response: Any,
        view: str,
        options: Mapping[str, Any] | str | None,
    ) -> str:
        if isinstance(options, str):
            options = {"content": options}
        call_options: dict[str, Any] = copy_value(options) if options else {}

        conf = self.conf.clone()
        ext = call_options.get("ext")
        resolution = self.resolver.cached(view, ext)
        if resolution is None:
            resolution = await anyio.to_thread.run_sync(
                self.resolver.resolve, view, ext
            )
        conf.push(resolution.options)
        conf.push(await self.helpers.resolve(request, response))

        with_options = conf.clone()
        with_options.push(call_options)
        engine = get_engine(self._engines, with_options.get("engine"))

        partial_data = await self.partial_tree.resolve(
            request, with_options.deep_merge(), engine
        )
        conf.push(partial_data)
        conf.push(call_options)

        data = conf.deep_merge()
        body = await engine(resolution.path, data)

        layout = data.get("layout")
        if not layout or layout == view:
            return body

        layout_conf = self.conf.clone()
        layout_conf.push({k: v for k, v in data.items() if k != "content"})
        layout_conf.unshift({"content": body, "layout": layout})
        try:
            return await self._render(
                request, response, str(layout), layout_conf.deep_merge()
            )
        except NotFoundError as e:
            if e.target != str(layout):
                raise
            self.log("layout_not_found", level="debug", view=view, layout=layout)
            return body

    def _response_callback(self, response: Any) -> RenderCallback:
        def write(err: Exception | None, text: str | None) -> None:
            if err is not None:
                raise err
            status = getattr(response, "status_code", None) or 200
            response.write_head(status, {"Content-Type": "text/html"})
            response.write(text or "")
            response.end()

        return write

    async def render_status(
        self,
        request: Any,
        response: Any,
        code: int,
        message: str | None = None,
    ) -> None:
        """Render a status code page.

        Renders the ``status-<code>`` view with ``message``. If that view
        cannot be rendered, the message is written as the raw body instead,
        so a response is always produced.

        Args:
            request: The current request.
            response: The current response.
            code: HTTP status code.
            message: Custom message. Known codes default to
                ``"<code> - <description>"``.
        """
        if not message:
            description = STATUS_MESSAGES.get(code)
            message = f"{code} - {description}" if description else str(code)

        response.status_code = code

        try:
            _ = await self.render(
                request, response, f"status-{code}", {"message": message}
            )
        except NotFoundError:
            self.log("status_template_missing", level="debug", code=code)
            response.end(message)
        except Exception as e:  # noqa: BLE001
            self.log("status_render_failed", level="error", code=code, error=str(e))
            response.end(message)


async def _invoke(
    callback: RenderCallback, err: Exception | None, text: str | None
) -> None:
    result = callback(err, text)
    if inspect.isawaitable(result):
        await result


def create_registry(
    root: str | Path | Mapping[str, Any] | None = None,
    options: Mapping[str, Any] | None = None,
    *,
    engines: Mapping[str, TemplateEngine] | None = None,
    filesystem: FileSystem | None = None,
) -> ViewEngine:
    """Create a views registry.

    Args:
        root: Optional directory to register as the default (unprefixed)
            namespace. A mapping here is taken as ``options``.
        options: Engine-wide defaults.
        engines: Extra template engines by name.
        filesystem: Filesystem used for every existence check.

    Returns:
        A new ViewEngine.
    """
    if isinstance(root, Mapping):
        options, root = root, None

    views = ViewEngine(options, engines=engines, filesystem=filesystem)
    if root is not None:
        _ = views.register(root)
    return views
