# tests/fakes.py

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable
from typing import Any

from chainworker.core.models import ItemDetail, TaskDescriptor


def make_item(
    token_id: str,
    tids: Iterable[str] = (),
    *,
    code: str | None = None,
    inputs: dict[str, Any] | None = None,
    raw_inputs: dict[str, str] | None = None,
) -> ItemDetail:
    """
    ItemDetail with one descriptor per tid.

    Inputs default to {"a": 1, "b": 2}; `raw_inputs` overrides the serialized
    input string per tid (e.g. to make it unparseable).
    """
    raw_inputs = raw_inputs or {}
    tasks = {
        tid: TaskDescriptor(tid=tid, input=raw_inputs.get(tid, json.dumps(inputs or {"a": 1, "b": 2})))
        for tid in tids
    }
    return ItemDetail(token_id=token_id, code=code or f"code-{token_id}", tasks=tasks)


async def _hang() -> None:
    await asyncio.Event().wait()


class FakeLedger:
    """
    In-memory ContractLedger with consistent state.

    - `pending[token_id]` plays `remains`; a successful `response` removes the tid
    - `incomplete` plays `incomplete_projects`; a successful `update` removes the id
    - `fail_on` / `hang_on`: operation names that raise / never complete
    - `commit_failures`: number of upcoming commits that raise
    """

    def __init__(
        self,
        items: Iterable[ItemDetail] = (),
        *,
        incomplete: Iterable[str] | None = None,
    ) -> None:
        self.items: dict[str, ItemDetail] = {i.token_id: i for i in items}
        self.pending: dict[str, list[str]] = {k: list(v.tasks) for k, v in self.items.items()}
        self.incomplete: list[str] = list(incomplete) if incomplete is not None else []
        self.calls: list[tuple[str, str | None]] = []
        self.responses: list[tuple[str, str, str]] = []
        self.updates: list[tuple[str, str, str]] = []
        self.fail_on: set[str] = set()
        self.hang_on: set[str] = set()
        self.commit_failures = 0
        self._tx = 0
        self.closed = False

    async def _enter(self, name: str, token_id: str | None = None) -> None:
        self.calls.append((name, token_id))
        if name in self.hang_on:
            await _hang()
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    async def num_tokens(self) -> int:
        await self._enter("num_tokens")
        return len(self.items)

    async def remains(self, token_id: str) -> list[str]:
        await self._enter("remains", token_id)
        return list(self.pending.get(token_id, []))

    async def incomplete_projects(self) -> list[str]:
        await self._enter("incomplete_projects")
        return list(self.incomplete)

    async def nft_info(self, token_id: str) -> ItemDetail:
        await self._enter("nft_info", token_id)
        return self.items[token_id]

    async def _commit(self, name: str, token_id: str) -> str:
        await self._enter(name, token_id)
        if self.commit_failures > 0:
            self.commit_failures -= 1
            raise RuntimeError("account sequence mismatch")
        self._tx += 1
        return f"TX{self._tx:04d}"

    async def response(self, token_id: str, task_id: str, output: str) -> str:
        tx = await self._commit("response", token_id)
        self.responses.append((token_id, task_id, output))
        if task_id in self.pending.get(token_id, []):
            self.pending[token_id].remove(task_id)
        return tx

    async def update(self, token_id: str, title: str, description: str) -> str:
        tx = await self._commit("update", token_id)
        self.updates.append((token_id, title, description))
        if token_id in self.incomplete:
            self.incomplete.remove(token_id)
        return tx

    async def aclose(self) -> None:
        self.closed = True


class FakeCompute:
    """Deterministic ComputeEngine: records calls, returns `result` (or fails / hangs)."""

    def __init__(self, result: Any = "ok", *, fail: bool = False, hang: bool = False) -> None:
        self.result = result
        self.fail = fail
        self.hang = hang
        self.calls: list[tuple[str, Any]] = []

    async def run(self, code: str, inputs: Any) -> Any:
        self.calls.append((code, inputs))
        if self.hang:
            await _hang()
        if self.fail:
            raise ConnectionError("connect ECONNREFUSED 127.0.0.1:3327")
        return self.result


class FakeCompletion:
    """Deterministic CompletionClient: captures prompts, returns `next_text`."""

    def __init__(
        self,
        next_text: str = '{"title": "Simple Addition", "description": "Adds two inputs."}',
        *,
        fail: bool = False,
        hang: bool = False,
    ) -> None:
        self.next_text = next_text
        self.fail = fail
        self.hang = hang
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.hang:
            await _hang()
        if self.fail:
            raise RuntimeError("upstream 503")
        return self.next_text


class RecordingSleep:
    """Replaces asyncio.sleep in the sweep loop; records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
