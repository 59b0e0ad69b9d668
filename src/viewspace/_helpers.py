# pyright: reportAny=false, reportExplicitAny=false
"""Views helpers: per-request template data contributors."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, final

import orjson

from viewspace._concurrency import gather
from viewspace._layers import LayeredConfig, copy_value
from viewspace._patterns import (
    MATCH_ALL,
    PatternLike,
    pattern_matches,
    request_path,
    stringify_pattern,
)
from viewspace.exceptions import HelperError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    HelperResult = Mapping[str, Any] | None
    HelperFunc = Callable[[Any, Any], HelperResult | Awaitable[HelperResult]]

JSON_KEY = "_json_"
MEMO_ATTR = "_viewspace_memo"


@dataclass(frozen=True, slots=True)
class StaticHelper:
    """Template data merged as-is into every matching request."""

    data: dict[str, Any]


@dataclass(frozen=True, slots=True)
class DynamicHelper:
    """A function producing template data from ``(request, response)``.

    The function may be a coroutine function. It returns a mapping, or None
    to contribute nothing.
    """

    func: HelperFunc


HelperEntry = StaticHelper | DynamicHelper


@dataclass(slots=True)
class RequestMemo:
    """Data resolved once per request and reused by nested renders.

    Attributes:
        helpers: Merged helper data, once resolved.
        partials: Rendered partials, once resolved.
    """

    helpers: dict[str, Any] | None = None
    partials: dict[str, Any] | None = None


def request_memo(request: object) -> RequestMemo:
    """Return the memo attached to ``request``, attaching one if needed."""
    memo = getattr(request, MEMO_ATTR, None)
    if not isinstance(memo, RequestMemo):
        memo = RequestMemo()
        setattr(request, MEMO_ATTR, memo)
    return memo


def expand_json(data: dict[str, Any]) -> dict[str, Any]:
    """Expose each ``_json_`` entry as a top-level JSON string.

    Existing top-level keys are never overwritten. The common use-case is
    handing data to client-side javascript.

    Args:
        data: Merged helper data, modified in place.

    Returns:
        The same dictionary.

    Raises:
        orjson.JSONEncodeError: If a value cannot be serialised.
    """
    json_data = data.get(JSON_KEY)
    if isinstance(json_data, Mapping):
        for key, value in json_data.items():
            if key not in data:
                data[key] = orjson.dumps(value).decode()
    return data


@final
class HelperSet:
    """Pattern-keyed collection of views helpers.

    Helpers registered later take precedence over earlier ones for
    overlapping keys, regardless of which pattern they were registered
    under.
    """

    __slots__ = ("_helpers", "_sequence")

    def __init__(self) -> None:
        self._helpers: dict[str, list[tuple[int, HelperEntry]]] = {}
        self._sequence: int = 0

    @property
    def patterns(self) -> tuple[str, ...]:
        """Normalised patterns that have helpers, in registration order."""
        return tuple(self._helpers)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._helpers.values())

    def register(
        self,
        helper: Mapping[str, Any] | HelperFunc,
        pattern: PatternLike | None = None,
    ) -> HelperEntry:
        """Register a helper.

        Args:
            helper: Static template data, or a function called with
                ``(request, response)`` that returns template data.
            pattern: Only apply to request paths matching this pattern.
                Strings must match the whole path. Defaults to every path.

        Returns:
            The stored helper entry.

        Raises:
            TypeError: If ``helper`` is neither a mapping nor callable.
        """
        entry: HelperEntry
        if isinstance(helper, Mapping):
            entry = StaticHelper(copy_value(helper))
        elif callable(helper):
            entry = DynamicHelper(helper)
        else:
            msg = f"Helper must be a mapping or a callable, got {type(helper).__name__}"
            raise TypeError(msg)

        key = stringify_pattern(pattern)
        self._helpers.setdefault(key, []).append((self._sequence, entry))
        self._sequence += 1
        return entry

    def clear(self, pattern: PatternLike | None = None) -> None:
        """Remove the helpers of one pattern, or every helper."""
        if pattern is None:
            self._helpers.clear()
            return
        _ = self._helpers.pop(stringify_pattern(pattern), None)

    def matching(self, path: str) -> list[tuple[str, HelperEntry]]:
        """Return ``(pattern, helper)`` pairs applying to ``path``.

        The result is ordered by registration.
        """
        matched = [
            (sequence, pattern, entry)
            for pattern, entries in self._helpers.items()
            if pattern_matches(pattern, path)
            for sequence, entry in entries
        ]
        matched.sort(key=lambda item: item[0])
        return [(pattern, entry) for _, pattern, entry in matched]

    async def resolve(self, request: Any, response: Any) -> dict[str, Any]:
        """Resolve helper data for a request.

        Runs at most once per request object; later calls return the same
        dictionary. Callers must copy it before modifying it.

        Args:
            request: The request. Must expose ``url`` and accept attributes.
            response: The response, passed through to dynamic helpers.

        Returns:
            The merged helper data.

        Raises:
            HelperError: If any dynamic helper fails, or the merged
                ``_json_`` data cannot be serialised.
        """
        memo = request_memo(request)
        if memo.helpers is not None:
            return memo.helpers

        matched = self.matching(request_path(str(request.url)))

        async def run(pattern: str, entry: HelperEntry) -> Mapping[str, Any] | None:
            if isinstance(entry, StaticHelper):
                return entry.data
            try:
                result = entry.func(request, response)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                msg = f"Views helper for {pattern!r} failed: {e}"
                raise HelperError(msg, pattern=pattern) from e
            if result is not None and not isinstance(result, Mapping):
                msg = (
                    f"Views helper for {pattern!r} returned "
                    f"{type(result).__name__}, expected a mapping"
                )
                raise HelperError(msg, pattern=pattern)
            return result

        results = await gather(
            [lambda p=pattern, e=entry: run(p, e) for pattern, entry in matched]
        )

        layers = LayeredConfig(*(data for data in results if data))
        try:
            memo.helpers = expand_json(layers.deep_merge())
        except orjson.JSONEncodeError as e:
            owners = [
                pattern
                for (pattern, _), data in zip(matched, results, strict=True)
                if data and JSON_KEY in data
            ]
            owner = owners[-1] if owners else MATCH_ALL
            msg = f"Views helper for {owner!r} has unserialisable {JSON_KEY}: {e}"
            raise HelperError(msg, pattern=owner) from e
        return memo.helpers
