# src/chainworker/ledger/threads.py

from __future__ import annotations

import itertools
import threading
from concurrent.futures import Executor, Future
from concurrent.futures import wait as wait_all
from typing import Any, Callable


class DaemonThreadExecutor(Executor):
    """
    Runs every submitted call on its own daemon thread.

    Blocking SDK calls abandoned by a timeout keep running in the background,
    but a daemon thread never holds up interpreter exit and is not joined by
    `asyncio.run()` (which only waits for the loop's default executor).
    """

    def __init__(self, name: str = "ledger") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._pending: set[Future] = set()
        self._counter = itertools.count()
        self._shutdown = False

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        with self._lock:
            if self._shutdown:
                raise RuntimeError("cannot schedule new calls after shutdown")
            fut: Future = Future()
            self._pending.add(fut)

        thread = threading.Thread(
            target=self._work,
            args=(fut, fn, args, kwargs),
            name=f"{self._name}-{next(self._counter)}",
            daemon=True,
        )
        thread.start()
        return fut

    def _work(self, fut: Future, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        try:
            if not fut.set_running_or_notify_cancel():
                return
            try:
                result = fn(*args, **kwargs)
            except BaseException as e:
                fut.set_exception(e)
            else:
                fut.set_result(result)
        finally:
            with self._lock:
                self._pending.discard(fut)

    @property
    def active(self) -> int:
        with self._lock:
            return len(self._pending)

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        with self._lock:
            self._shutdown = True
            pending = list(self._pending)
        if cancel_futures:
            for fut in pending:
                fut.cancel()
        if wait:
            wait_all(pending)
