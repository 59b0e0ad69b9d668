"""URL pattern normalisation and request path parsing."""

import re
from functools import lru_cache
from urllib.parse import urlsplit

MATCH_ALL = ".*"

PatternLike = str | re.Pattern[str]


def stringify_pattern(pattern: PatternLike | None) -> str:
    """Normalise a url pattern to regular expression source.

    Compiled expressions keep their source. Plain strings are anchored so the
    path has to match in full.

    Args:
        pattern: A string or compiled regular expression. ``None`` matches
            every path.

    Returns:
        Regular expression source usable as a registry key.

    Example:
        >>> stringify_pattern("/hey")
        '^/hey$'
        >>> stringify_pattern(re.compile(r"^/blog/.*"))
        '^/blog/.*'
    """
    if pattern is None:
        return MATCH_ALL
    if isinstance(pattern, re.Pattern):
        return pattern.pattern
    return f"^{pattern}$"


@lru_cache(maxsize=256)
def compile_pattern(source: str) -> re.Pattern[str]:
    """Compile (and cache) a normalised pattern."""
    return re.compile(source)


def pattern_matches(source: str, path: str) -> bool:
    """Check whether a normalised pattern matches a request path."""
    return compile_pattern(source).search(path) is not None


@lru_cache(maxsize=1024)
def request_path(url: str) -> str:
    """Return the path component of a request url.

    Accepts both absolute urls and bare request targets (``/a/b?c=d``).
    """
    return urlsplit(url).path or "/"
