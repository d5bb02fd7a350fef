# src/chainworker/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

# Output committed when a task's input cannot be parsed (or the sandbox returns nothing).
FAIL_OUTPUT = "Fail to run."


@dataclass(slots=True, frozen=True)
class TaskDescriptor:
    """One task attached to an item: serialized JSON `input` and its `tid`."""

    tid: str
    input: str | None


@dataclass(slots=True, frozen=True)
class ItemDetail:
    """
    Detail record of an item as returned by the `nft_info` query.

    Only the `extension` part matters to the workers:
    {"extension": {"code": ..., "tasks": {tid: {"input", "tid"}}, "title"?, "description"?}}
    """

    token_id: str
    code: str
    tasks: dict[str, TaskDescriptor] = field(default_factory=dict)
    title: str | None = None
    description: str | None = None

    @classmethod
    def from_query(cls, token_id: str, payload: Mapping[str, Any]) -> ItemDetail:
        """
        Build from a raw `nft_info` query result.

        Raises ValueError when the record has no `extension` object.
        """
        ext = payload.get("extension") if isinstance(payload, Mapping) else None
        if not isinstance(ext, Mapping):
            raise ValueError(f"nft_info for token {token_id} has no extension")

        tasks: dict[str, TaskDescriptor] = {}
        for key, raw in (ext.get("tasks") or {}).items():
            if not isinstance(raw, Mapping):
                continue
            tasks[str(key)] = TaskDescriptor(
                tid=str(raw.get("tid", key)),
                input=raw.get("input"),
            )

        return cls(
            token_id=token_id,
            code=str(ext.get("code") or ""),
            tasks=tasks,
            title=ext.get("title"),
            description=ext.get("description"),
        )


@dataclass(slots=True, frozen=True)
class ItemMetadata:
    title: str
    description: str


@dataclass(slots=True, frozen=True)
class Fee:
    """Transaction fee for a fixed gas budget: `amount` of `denom` for `gas_limit` gas."""

    amount: int
    denom: str
    gas_limit: int

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


@dataclass(slots=True)
class SweepReport:
    """Aggregate counters for one sweep, logged at the end of it."""

    items: int = 0
    units: int = 0
    calls: int = 0
    commits: int = 0
    commit_failures: int = 0
    skipped: int = 0
    recorded_failures: int = 0

    def summary(self) -> str:
        return (
            f"items={self.items} units={self.units} calls={self.calls} "
            f"commits={self.commits} commit_failures={self.commit_failures} "
            f"skipped={self.skipped} recorded_failures={self.recorded_failures}"
        )


@dataclass(slots=True, frozen=True)
class WorkerExit:
    """Terminal value of a worker run loop; the entry point maps it to an exit code."""

    role: str
    sweeps: int
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1
