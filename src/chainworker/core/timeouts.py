# src/chainworker/core/timeouts.py

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")


class CallTimeout(TimeoutError):
    """An outbound call did not complete within its time limit."""

    def __init__(self, label: str, seconds: float) -> None:
        super().__init__(f"{label} timed out after {seconds:.1f}s")
        self.label = label
        self.seconds = seconds


async def call_with_timeout(call: Awaitable[T], seconds: float, *, label: str) -> T:
    """
    Await `call`, racing it against a deadline of `seconds`.

    The deadline lives in a scoped `asyncio.timeout` block: it is cancelled as
    soon as the block exits, whichever side won, so no timer outlives its call.
    On expiry the call is cancelled and CallTimeout is raised.
    """
    try:
        async with asyncio.timeout(seconds):
            return await call
    except TimeoutError as e:
        if isinstance(e, CallTimeout):
            raise
        raise CallTimeout(label, seconds) from e
