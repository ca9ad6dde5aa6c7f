from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import anyio

T = TypeVar("T")


def run_async(
    func: Callable[[], Awaitable[T]],
    *,
    timeout: float | None = None,
) -> T:
    """
    Run an async callable to completion from sync code.

    - Inside a FastAPI sync endpoint (AnyIO worker thread), runs on the app's event loop.
    - With no loop at all (CLI, plain tests), starts a temporary one with anyio.run.
    - Raises if called from a coroutine on the loop thread (await instead).
    """

    async def _runner() -> T:
        if timeout is not None:
            with anyio.fail_after(timeout):
                return await func()
        return await func()

    try:
        return anyio.from_thread.run(_runner)
    except RuntimeError:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return anyio.run(_runner)
        raise RuntimeError("run_async called from async context; use await instead")
