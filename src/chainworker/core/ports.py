# src/chainworker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the workers.

The sweep loops depend on Protocols instead of concrete implementations.
This keeps the ledger SDK, the sandbox and the completion provider swappable
and lets tests drive a sweep with in-memory fakes.
"""

from typing import Any, Protocol

from .models import ItemDetail


class ContractLedger(Protocol):
    """Queries and signed executes against the task registry contract."""

    async def num_tokens(self) -> int: ...
    async def remains(self, token_id: str) -> list[str]: ...
    async def incomplete_projects(self) -> list[str]: ...
    async def nft_info(self, token_id: str) -> ItemDetail: ...

    async def response(self, token_id: str, task_id: str, output: str) -> str:
        """Commit a task output. Returns the transaction hash."""
        ...

    async def update(self, token_id: str, title: str, description: str) -> str:
        """Commit item metadata. Returns the transaction hash."""
        ...


class ComputeEngine(Protocol):
    """Code execution sandbox: runs `code` with `inputs`, returns the raw result."""

    async def run(self, code: str, inputs: Any) -> Any: ...


class CompletionClient(Protocol):
    """Single-choice chat completion (OpenAI-compatible)."""

    async def complete(self, prompt: str) -> str: ...
