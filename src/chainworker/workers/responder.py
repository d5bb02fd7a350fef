# src/chainworker/workers/responder.py

from __future__ import annotations

import json
import logging

from ..compute.client import canonical_output
from ..core.models import FAIL_OUTPUT, ItemDetail, SweepReport, TaskDescriptor
from ..core.ports import ComputeEngine, ContractLedger
from ..core.timeouts import call_with_timeout
from .base import SweepWorker

logger = logging.getLogger(__name__)


class Responder(SweepWorker):
    """
    Answers pending tasks.

    Per sweep: `num_tokens` -> for each token 0..count-1: `nft_info` and
    `remains` -> for each remaining task: run the item's code on the task
    input in the sandbox -> commit `response`.

    Input that is not valid JSON is answered with FAIL_OUTPUT (a permanent
    answer). A sandbox failure leaves the task pending for the next sweep.
    """

    role = "responder"

    def __init__(
        self,
        ledger: ContractLedger,
        compute: ComputeEngine,
        *,
        compute_timeout_seconds: float = 60.0,
        **kwargs,
    ) -> None:
        super().__init__(ledger, **kwargs)
        self._compute = compute
        self._compute_timeout = float(compute_timeout_seconds)

    async def sweep(self) -> SweepReport:
        report = SweepReport()

        count = await self._fatal("num_tokens", self._ledger.num_tokens())
        logger.info("Token Length: %d", count)

        for index in range(count):
            token_id = str(index)
            report.items += 1

            info = await self._fatal("nft_info", self._ledger.nft_info(token_id))
            remains = await self._fatal("remains", self._ledger.remains(token_id))
            logger.info("Task Remains: token=%s [%s]", token_id, ",".join(remains))

            for tid in remains:
                report.units += 1
                await self._answer_task(info, tid, report)

        return report

    async def _answer_task(self, info: ItemDetail, tid: str, report: SweepReport) -> None:
        token_id = info.token_id
        unit = f"Token: {token_id} | Task: {tid}"
        logger.info("start - %s", unit)

        task = info.tasks.get(tid)
        if task is None:
            report.skipped += 1
            logger.warning("No task descriptor in nft_info for %s; skipping", unit)
            return
        logger.debug("task %s: %r", tid, task)

        output = await self.resolve_output(info, task, report)
        if output is None:
            report.skipped += 1
            logger.info("skip - %s", unit)
            return

        await self._commit(
            self._ledger.response(token_id, task.tid, output),
            unit=unit,
            report=report,
        )

    async def resolve_output(
        self, info: ItemDetail, task: TaskDescriptor, report: SweepReport
    ) -> str | None:
        """
        Output to commit for one task, or None to leave it pending.
        """
        try:
            inputs = json.loads(task.input)  # type: ignore[arg-type]
        except (TypeError, ValueError) as e:
            report.recorded_failures += 1
            logger.warning(
                "Error parsing task inputs token=%s task=%s: %r", info.token_id, task.tid, e
            )
            return FAIL_OUTPUT

        report.calls += 1
        try:
            raw = await call_with_timeout(
                self._compute.run(info.code, inputs),
                self._compute_timeout,
                label=f"compute token={info.token_id} task={task.tid}",
            )
        except Exception as e:
            logger.error(
                "Error during output fetching token=%s task=%s: %r", info.token_id, task.tid, e
            )
            return None

        output = canonical_output(raw)
        logger.info("Answer: %s", output)
        return output
