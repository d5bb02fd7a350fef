# src/chainworker/ledger/client.py

"""
CosmWasm contract adapter.

Wraps the blocking cosmpy SDK behind the async ContractLedger port:
- smart queries (`num_tokens`, `remains`, `incomplete_projects`, `nft_info`),
- signed executes (`response`, `update`) paid with a fee fixed at startup.

Each SDK call runs on its own daemon thread so the caller's scoped timeout can
race it. A call abandoned by a timeout keeps running but never blocks exit.
Signed executes are serialized: a broadcast still running after its timeout
holds the signer until it finishes, so the next one cannot reuse its sequence.
Timeouts themselves are applied by the workers, not here.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable

from cosmpy.aerial.client import LedgerClient, NetworkConfig
from cosmpy.aerial.contract import LedgerContract
from cosmpy.aerial.wallet import LocalWallet
from cosmpy.crypto.address import Address

from ..core.models import Fee, ItemDetail
from .fees import describe_fee, parse_gas_price, reconcile_fee
from .threads import DaemonThreadExecutor

logger = logging.getLogger(__name__)


def _gas_price_number(gas_price: str) -> int | float:
    price, _ = parse_gas_price(gas_price)
    return int(price) if price == price.to_integral_value() else float(price)


class CosmWasmLedger:
    """ContractLedger backed by cosmpy's LedgerClient + LedgerContract."""

    def __init__(self, contract: Any, wallet: Any, fee: Fee) -> None:
        self._contract = contract
        self._wallet = wallet
        self._fee = fee
        self._executor = DaemonThreadExecutor("cosmpy")
        self._execute_lock = threading.Lock()

    @classmethod
    def connect(
        cls,
        *,
        url: str,
        chain_id: str,
        contract_address: str,
        mnemonic: str,
        address_prefix: str,
        gas_price: str,
        fee: Fee,
    ) -> "CosmWasmLedger":
        """
        Derive the signing wallet from the mnemonic and connect to the chain.

        `url` must be a cosmpy endpoint ("grpc+https://..." or "rest+https://...").
        The network's minimum gas price is the configured one. The SDK's own
        estimate for `fee.gas_limit` gas is checked against `fee`; when they
        differ the SDK figure is what gets charged and what `fee` reports.
        """
        _, denom = parse_gas_price(gas_price)
        cfg = NetworkConfig(
            chain_id=chain_id,
            url=url,
            fee_minimum_gas_price=_gas_price_number(gas_price),
            fee_denomination=denom,
            staking_denomination=denom,
        )
        client = LedgerClient(cfg)
        fee = reconcile_fee(fee, client.estimate_fee_from_gas(fee.gas_limit))
        wallet = LocalWallet.from_mnemonic(mnemonic, prefix=address_prefix)
        contract = LedgerContract(None, client, address=Address(contract_address))
        logger.info("Ledger connected: chain=%s contract=%s signer=%s", chain_id, contract_address, wallet.address())
        logger.info("SDK execute fee: %s", describe_fee(fee))
        return cls(contract, wallet, fee)

    @property
    def address(self) -> str:
        return str(self._wallet.address())

    @property
    def fee(self) -> Fee:
        return self._fee

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    async def aclose(self) -> None:
        """Refuse new SDK calls. Calls still in flight are abandoned, not joined."""
        if self._executor.active:
            logger.info("Abandoning %d in-flight ledger call(s).", self._executor.active)
        self._executor.shutdown(wait=False)

    # ---- queries ----

    async def _query(self, msg: dict[str, Any]) -> Any:
        result = await self._call(self._contract.query, msg)
        if result is None:
            raise ValueError(f"Empty query result for {next(iter(msg))}")
        return result

    async def num_tokens(self) -> int:
        res = await self._query({"num_tokens": {}})
        return int(res["count"])

    async def remains(self, token_id: str) -> list[str]:
        res = await self._query({"remains": {"token_id": token_id}})
        return [str(t) for t in (res.get("tids") or [])]

    async def incomplete_projects(self) -> list[str]:
        res = await self._query({"incomplete_projects": {}})
        return [str(p) for p in (res.get("pids") or [])]

    async def nft_info(self, token_id: str) -> ItemDetail:
        res = await self._query({"nft_info": {"token_id": token_id}})
        return ItemDetail.from_query(token_id, res)

    # ---- executes ----

    def _execute_sync(self, msg: dict[str, Any], abandoned: threading.Event) -> str:
        with self._execute_lock:
            if abandoned.is_set():
                raise RuntimeError(f"{next(iter(msg))} abandoned before broadcast")
            tx = self._contract.execute(msg, self._wallet, gas_limit=self._fee.gas_limit)
            tx.wait_to_complete()
            return str(tx.tx_hash)

    async def _execute(self, msg: dict[str, Any]) -> str:
        # Set when the caller gives up; a queued execute then never broadcasts.
        abandoned = threading.Event()
        try:
            return await self._call(self._execute_sync, msg, abandoned)
        except asyncio.CancelledError:
            abandoned.set()
            raise

    async def response(self, token_id: str, task_id: str, output: str) -> str:
        logger.debug("execute response token=%s task=%s output=%r", token_id, task_id, output)
        return await self._execute(
            {"response": {"token_id": token_id, "task_id": task_id, "output": output}}
        )

    async def update(self, token_id: str, title: str, description: str) -> str:
        logger.debug("execute update token=%s title=%r", token_id, title)
        return await self._execute(
            {"update": {"token_id": token_id, "title": title, "description": description}}
        )
