from __future__ import annotations

import anyio
import pytest

from viewspace._concurrency import gather

pytestmark = pytest.mark.anyio


async def test_empty_task_list() -> None:
    assert await gather([]) == []


async def test_results_keep_task_order() -> None:
    async def slow() -> str:
        await anyio.sleep(0.01)
        return "slow"

    async def fast() -> str:
        return "fast"

    assert await gather([slow, fast]) == ["slow", "fast"]


async def test_tasks_run_concurrently() -> None:
    first_started = anyio.Event()
    second_started = anyio.Event()

    async def first() -> int:
        first_started.set()
        await second_started.wait()
        return 1

    async def second() -> int:
        second_started.set()
        await first_started.wait()
        return 2

    with anyio.fail_after(1):
        results = await gather([first, second])

    assert results == [1, 2]


async def test_failure_is_unwrapped_and_cancels_siblings() -> None:
    cancelled: list[bool] = []

    async def slow() -> None:
        try:
            await anyio.sleep(10)
        except anyio.get_cancelled_exc_class():
            cancelled.append(True)
            raise

    async def failing() -> None:
        await anyio.sleep(0)
        msg = "boom"
        raise ValueError(msg)

    with anyio.fail_after(1), pytest.raises(ValueError, match="boom"):
        _ = await gather([slow, failing])

    assert cancelled == [True]
