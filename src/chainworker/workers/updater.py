# src/chainworker/workers/updater.py

from __future__ import annotations

import logging

from ..core.errors import MalformedCompletion
from ..core.models import ItemDetail, ItemMetadata, SweepReport
from ..core.ports import CompletionClient, ContractLedger
from ..core.timeouts import call_with_timeout
from ..llm.client import describe_llm_error
from ..llm.metadata import build_metadata_prompt, parse_metadata
from .base import SweepWorker

logger = logging.getLogger(__name__)


class Updater(SweepWorker):
    """
    Fills in missing item metadata.

    Per sweep: `incomplete_projects` -> for each id: `nft_info` -> ask the
    language model for {"title", "description"} -> commit `update`.
    A failed or malformed completion skips the item; it stays in
    `incomplete_projects` and is tried again next sweep.
    """

    role = "updater"

    def __init__(
        self,
        ledger: ContractLedger,
        completion: CompletionClient,
        *,
        completion_timeout_seconds: float = 60.0,
        **kwargs,
    ) -> None:
        super().__init__(ledger, **kwargs)
        self._completion = completion
        self._completion_timeout = float(completion_timeout_seconds)

    async def sweep(self) -> SweepReport:
        report = SweepReport()

        pids = await self._fatal("incomplete_projects", self._ledger.incomplete_projects())
        logger.info("Projects: [%s]", ",".join(pids))

        for pid in pids:
            token_id = str(pid)
            report.items += 1
            report.units += 1

            info = await self._fatal("nft_info", self._ledger.nft_info(token_id))

            metadata = await self.describe_item(info, report)
            if metadata is None:
                report.skipped += 1
                logger.info("skip - Token: %s", token_id)
                continue

            await self._commit(
                self._ledger.update(token_id, metadata.title, metadata.description),
                unit=f"Token: {token_id}",
                report=report,
            )

        return report

    async def describe_item(self, info: ItemDetail, report: SweepReport) -> ItemMetadata | None:
        """Title + description for one item, or None when the completion is unusable."""
        prompt = build_metadata_prompt(info.code)

        report.calls += 1
        try:
            raw = await call_with_timeout(
                self._completion.complete(prompt),
                self._completion_timeout,
                label=f"completion token={info.token_id}",
            )
        except Exception as e:
            logger.error("Error during completion token=%s: %s", info.token_id, describe_llm_error(e))
            return None

        try:
            metadata = parse_metadata(raw)
        except MalformedCompletion as e:
            logger.warning("Malformed completion token=%s: %s", info.token_id, e)
            return None

        logger.info("Answer: token=%s title=%r", info.token_id, metadata.title)
        return metadata
