"""Shared test fixtures for viewspace tests."""

import threading
from collections import Counter
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import SimpleNamespace

import pytest
from rich.console import Console

from viewspace import LocalFileSystem, ViewEngine, create_registry


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class CountingFileSystem:
    """A FileSystem that counts calls before delegating to the local disk."""

    def __init__(self) -> None:
        self.calls: Counter[str] = Counter()
        self.exists_threads: set[int] = set()
        self._local = LocalFileSystem()

    def exists(self, path: Path) -> bool:
        self.calls["exists"] += 1
        self.exists_threads.add(threading.get_ident())
        return self._local.exists(path)

    def is_dir(self, path: Path) -> bool:
        self.calls["is_dir"] += 1
        return self._local.is_dir(path)

    def walk_files(self, directory: Path) -> Iterator[Path]:
        self.calls["walk_files"] += 1
        return self._local.walk_files(directory)


@dataclass
class RecordingResponse:
    """A ViewResponse that records everything written to it."""

    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    chunks: list[str] = field(default_factory=list)
    head_status: int | None = None
    ended: bool = False

    @property
    def body(self) -> str:
        return "".join(self.chunks)

    def write_head(self, status: int, headers: Mapping[str, str]) -> None:
        self.head_status = status
        self.headers.update(headers)

    def write(self, text: str) -> None:
        self.chunks.append(text)

    def end(self, text: str | None = None) -> None:
        if text:
            self.chunks.append(text)
        self.ended = True


def make_request(url: str = "/") -> SimpleNamespace:
    """Create a minimal request object."""
    return SimpleNamespace(url=url)


def write_views(root: Path, files: Mapping[str, str]) -> Path:
    """Write template files below ``root``, creating directories as needed.

    Contents are written verbatim, without a trailing newline.
    """
    for name, contents in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(contents, encoding="utf-8")
    return root


BASIC_VIEWS: Mapping[str, str] = {
    "hello.hbs": "<h1>Hello {{name}}</h1>",
    "layout.hbs": "<html><body>{{optional}}{{{content}}}</body></html>",
    "layout2.hbs": "<html><body><div>{{{content}}}</div></body></html>",
    "character.hbs": "{{{character}}}",
    "status-404.hbs": "<h1>404</h1><p>{{message}}</p>",
    "hello-turtle.hbs": "<h1>Hello {{{fullname}}}</h1>",
    "partials/fullname.hbs": "{{first}} {{last}}",
    "partials/nav/main.hbs": "<nav>{{site}}</nav>",
}


@pytest.fixture
def views_root(tmp_path: Path) -> Path:
    """A views directory with the basic fixture templates."""
    return write_views(tmp_path / "views", BASIC_VIEWS)


@pytest.fixture
def views(views_root: Path) -> ViewEngine:
    """A registry with ``views_root`` registered as the default namespace."""
    registry = create_registry()
    _ = registry.register(views_root)
    return registry


@pytest.fixture
def response() -> RecordingResponse:
    return RecordingResponse()


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
