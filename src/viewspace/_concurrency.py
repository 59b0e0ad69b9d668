"""Fan-out/fan-in helpers built on anyio task groups."""

from __future__ import annotations

from typing import TYPE_CHECKING

import anyio

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence


def _first_leaf(group: ExceptionGroup[Exception]) -> Exception:
    error: Exception = group
    while isinstance(error, ExceptionGroup):
        error = error.exceptions[0]
    return error


async def gather[T](tasks: Sequence[Callable[[], Awaitable[T]]]) -> list[T]:
    """Run ``tasks`` concurrently and collect their results in order.

    All tasks must complete. The first failure cancels the remaining tasks
    and is re-raised unwrapped from the task group's exception group.

    Args:
        tasks: Zero-argument async callables.

    Returns:
        Results, positionally matching ``tasks``.
    """
    results: list[T | None] = [None] * len(tasks)

    async def run(index: int, task: Callable[[], Awaitable[T]]) -> None:
        results[index] = await task()

    try:
        async with anyio.create_task_group() as tg:
            for index, task in enumerate(tasks):
                tg.start_soon(run, index, task)
    except ExceptionGroup as group:
        error = _first_leaf(group)
        raise error  # noqa: B904

    return results  # pyright: ignore[reportReturnType]
