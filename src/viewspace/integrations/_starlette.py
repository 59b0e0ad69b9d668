"""Starlette and FastAPI integration.

Renders views into Starlette responses. With FastAPI, inject a
:class:`PageRenderer` through :func:`page_renderer`::

    views = create_registry("app/views")
    app = FastAPI()

    @app.get("/")
    async def index(
        pages: Annotated[PageRenderer, Depends(page_renderer(views))],
    ) -> Response:
        return await pages.render("index", {"title": "Home"})
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, final

from fastapi import Request, Response  # noqa: TC002  # resolved by FastAPI at runtime

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from viewspace._views import ViewEngine


@final
class BufferedResponse:
    """A ViewResponse that collects output for a Starlette response."""

    __slots__ = ("_chunks", "finished", "headers", "status_code")

    def __init__(self, status_code: int = 200) -> None:
        self.status_code: int = status_code
        self.headers: dict[str, str] = {}
        self.finished: bool = False
        self._chunks: list[str] = []

    @property
    def body(self) -> str:
        """Text written so far."""
        return "".join(self._chunks)

    def write_head(self, status: int, headers: Mapping[str, str]) -> None:
        self.status_code = status
        self.headers.update(headers)

    def write(self, text: str) -> None:
        self._chunks.append(text)

    def end(self, text: str | None = None) -> None:
        if text:
            self._chunks.append(text)
        self.finished = True

    def to_response(self) -> Response:
        """Convert the buffered output to a Starlette response."""
        headers = dict(self.headers)
        media_type = None
        if not any(key.lower() == "content-type" for key in headers):
            media_type = "text/plain"
        return Response(
            content=self.body,
            status_code=self.status_code,
            headers=headers,
            media_type=media_type,
        )


@final
class PageRenderer:
    """Renders views for one Starlette request."""

    __slots__ = ("request", "views")

    def __init__(self, views: ViewEngine, request: Request) -> None:
        self.views: ViewEngine = views
        self.request: Request = request

    async def render(
        self,
        view: str,
        options: Mapping[str, Any] | str | None = None,
    ) -> Response:
        """Render a view as an HTML response.

        Render failures are logged and answered with the 500 status page.
        """
        response = BufferedResponse()
        try:
            _ = await self.views.render(self.request, response, view, options)
        except Exception as e:  # noqa: BLE001
            self.views.log("render_failed", level="error", view=view, error=str(e))
            return await self.render_status(500)
        return response.to_response()

    async def render_status(self, code: int, message: str | None = None) -> Response:
        """Render a status code page, falling back to the plain message."""
        response = BufferedResponse()
        await self.views.render_status(self.request, response, code, message)
        return response.to_response()


def page_renderer(views: ViewEngine) -> Callable[[Request], PageRenderer]:
    """Build a FastAPI dependency providing a PageRenderer per request."""

    def dependency(request: Request) -> PageRenderer:
        return PageRenderer(views, request)

    return dependency
