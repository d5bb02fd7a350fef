# src/chainworker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- takes the settings loaded once by the entry point,
- computes the transaction fee once,
- connects the signer/ledger and builds the external-service clients,
- wires them into the worker for the requested role.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from ..compute.client import SandboxComputeEngine
from ..config import Settings
from ..core.models import Fee
from ..ledger.fees import calculate_fee, describe_fee
from ..llm.client import OpenAICompletionClient
from ..workers import Responder, SweepWorker, Updater

logger = logging.getLogger(__name__)

ROLES = ("responder", "updater")

LedgerFactory = Callable[[Settings, Fee], Any]


def connect_ledger(settings: Settings, fee: Fee) -> Any:
    # Imported lazily: cosmpy pulls in grpc/protobuf at import time.
    from ..ledger.client import CosmWasmLedger

    return CosmWasmLedger.connect(
        url=settings.ledger_url,
        chain_id=settings.chain_id,
        contract_address=settings.contract_address,
        mnemonic=settings.mnemonic,
        address_prefix=settings.address_prefix,
        gas_price=settings.gas_price,
        fee=fee,
    )


@dataclass(slots=True)
class WorkerRuntime:
    """A wired worker plus the clients that must be closed when it stops."""

    worker: SweepWorker
    closers: list[Callable[[], Awaitable[None]]] = field(default_factory=list)

    async def aclose(self) -> None:
        for close in self.closers:
            try:
                await close()
            except Exception:
                logger.debug("Client close failed.", exc_info=True)


def _loop_kwargs(settings: Settings) -> dict[str, float]:
    return {
        "interval_seconds": settings.sweep_interval_seconds,
        "query_timeout_seconds": settings.query_timeout_seconds,
        "tx_timeout_seconds": settings.tx_timeout_seconds,
    }


def create_worker(
    role: str,
    settings: Settings,
    *,
    ledger_factory: LedgerFactory = connect_ledger,
) -> WorkerRuntime:
    """
    Build the worker for `role` from validated settings.

    `ledger_factory` is injectable so the wiring can be tested without a chain.
    """
    if role not in ROLES:
        raise ValueError(f"Unknown worker role: {role!r}")

    fee = calculate_fee(settings.gas_limit, settings.gas_price)
    logger.info("Execute fee: %s", describe_fee(fee))

    ledger = ledger_factory(settings, fee)
    closers = [ledger.aclose] if hasattr(ledger, "aclose") else []

    if role == "responder":
        compute = SandboxComputeEngine(
            settings.compute_url,
            timeout_seconds=settings.compute_timeout_seconds,
        )
        worker: SweepWorker = Responder(
            ledger,
            compute,
            compute_timeout_seconds=settings.compute_timeout_seconds,
            **_loop_kwargs(settings),
        )
        return WorkerRuntime(worker=worker, closers=[compute.aclose, *closers])

    completion = OpenAICompletionClient(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.llm_model,
        max_tokens=settings.llm_max_tokens,
        timeout_seconds=settings.completion_timeout_seconds,
    )
    worker = Updater(
        ledger,
        completion,
        completion_timeout_seconds=settings.completion_timeout_seconds,
        **_loop_kwargs(settings),
    )
    return WorkerRuntime(worker=worker, closers=[completion.aclose, *closers])
