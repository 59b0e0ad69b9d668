"""Web framework adapters for viewspace."""

from ._starlette import BufferedResponse, PageRenderer, page_renderer

__all__ = ["BufferedResponse", "PageRenderer", "page_renderer"]
