# src/chainworker/workers/base.py

"""
Sweep loop shared by both workers.

One sweep = discovery -> per-item resolution -> per-unit commit, strictly
sequential. Between sweeps the loop sleeps a fixed interval. "Pending" is
always recomputed from the ledger; a skipped unit is retried only because the
next sweep rediscovers it.

Failure classes:
- fatal (discovery / detail queries): the sweep stops and run() returns a
  WorkerExit carrying the error; the entry point decides to exit the process.
- unit-skippable (external call, commit): logged, the sweep continues.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from ..core.errors import FatalWorkerError
from ..core.models import SweepReport, WorkerExit
from ..core.ports import ContractLedger
from ..core.timeouts import call_with_timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[Any]]


class SweepWorker:
    role = "worker"

    def __init__(
        self,
        ledger: ContractLedger,
        *,
        interval_seconds: float = 20.0,
        query_timeout_seconds: float = 60.0,
        tx_timeout_seconds: float = 60.0,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._ledger = ledger
        self._interval = max(0.0, float(interval_seconds))
        self._query_timeout = float(query_timeout_seconds)
        self._tx_timeout = float(tx_timeout_seconds)
        self._sleep = sleep
        self.sweeps = 0

    async def sweep(self) -> SweepReport:
        raise NotImplementedError

    async def _fatal(self, stage: str, call: Awaitable[T]) -> T:
        """Timeout-guarded ledger query whose failure ends the sweep."""
        try:
            return await call_with_timeout(call, self._query_timeout, label=stage)
        except Exception as e:
            raise FatalWorkerError(stage, e) from e

    async def _commit(self, call: Awaitable[str], *, unit: str, report: SweepReport) -> bool:
        """
        Submit one signed transaction.

        Failure is logged and counted; the unit stays pending on the ledger and
        is not retried within this sweep.
        """
        try:
            tx_hash = await call_with_timeout(call, self._tx_timeout, label=f"commit {unit}")
        except Exception as e:
            report.commit_failures += 1
            logger.error("Error sending transaction for %s: %r", unit, e)
            logger.info("skip - %s", unit)
            return False

        report.commits += 1
        logger.info("Transaction Hash: %s (%s)", tx_hash, unit)
        return True

    async def run(self, *, max_sweeps: int | None = None) -> WorkerExit:
        """
        Sweep forever (or `max_sweeps` times), sleeping between sweeps.

        Never exits the process: returns a WorkerExit with the fatal error, if
        any. Cancellation (signal handling) propagates to the caller.
        """
        self.sweeps = 0
        while True:
            try:
                report = await self.sweep()
            except FatalWorkerError as e:
                logger.error("%s stopped: %s", self.role, e)
                return WorkerExit(role=self.role, sweeps=self.sweeps, error=e)
            except Exception as e:
                logger.exception("Unhandled error in %s sweep", self.role)
                return WorkerExit(role=self.role, sweeps=self.sweeps, error=e)

            self.sweeps += 1
            logger.info("%s sweep #%d done: %s", self.role, self.sweeps, report.summary())

            if max_sweeps is not None and self.sweeps >= max_sweeps:
                return WorkerExit(role=self.role, sweeps=self.sweeps)

            await self._sleep(self._interval)
