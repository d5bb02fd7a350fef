# tests/test_cli.py

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from chainworker.cli.bootstrap import WorkerRuntime, create_worker
from chainworker.cli.main import build_parser, main, run_worker
from chainworker.config import REQUIRED_ENV
from chainworker.workers import Responder, Updater

from .fakes import FakeCompute, FakeLedger, make_item


def _fake_ledger_factory(captured: list, ledgers: list | None = None):
    def factory(settings, fee):
        captured.append(fee)
        ledger = FakeLedger([make_item("0", ["t1"])])
        if ledgers is not None:
            ledgers.append(ledger)
        return ledger

    return factory


@pytest.mark.asyncio
async def test_create_worker_wires_roles(settings) -> None:
    fees: list = []
    ledgers: list[FakeLedger] = []

    responder = create_worker("responder", settings, ledger_factory=_fake_ledger_factory(fees, ledgers))
    updater = create_worker("updater", settings, ledger_factory=_fake_ledger_factory(fees, ledgers))

    assert isinstance(responder.worker, Responder)
    assert isinstance(updater.worker, Updater)
    assert [str(f) for f in fees] == ["42000000000000000aarch"] * 2

    await responder.aclose()
    await updater.aclose()

    assert [ledger.closed for ledger in ledgers] == [True, True]


def test_create_worker_rejects_unknown_role(settings) -> None:
    with pytest.raises(ValueError, match="Unknown worker role"):
        create_worker("miner", settings, ledger_factory=_fake_ledger_factory([]))


def test_parser_roles() -> None:
    args = build_parser().parse_args(["updater", "--once"])
    assert (args.role, args.once) == ("updater", True)

    args = build_parser(role="responder").parse_args([])
    assert args.once is False


@pytest.mark.asyncio
async def test_run_worker_single_sweep() -> None:
    ledger = FakeLedger([make_item("0", ["t1"])])
    runtime = WorkerRuntime(worker=Responder(ledger, FakeCompute("ok")))

    result = await run_worker(runtime, max_sweeps=1)

    assert result.ok
    assert result.sweeps == 1
    assert ledger.responses == [("0", "t1", "ok")]


@pytest.mark.asyncio
async def test_run_worker_cancellation_is_a_clean_exit() -> None:
    closed: list[bool] = []

    async def close() -> None:
        closed.append(True)

    ledger = FakeLedger([make_item("0", [])])
    runtime = WorkerRuntime(worker=Responder(ledger, FakeCompute(), interval_seconds=10.0), closers=[close])

    task = asyncio.create_task(run_worker(runtime))
    await asyncio.sleep(0.05)
    task.cancel()
    result = await task

    assert result.ok
    assert result.sweeps >= 1
    assert closed == [True]


def test_main_exits_1_when_config_missing(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, restore_root_logging
) -> None:
    monkeypatch.chdir(tmp_path)
    for env in REQUIRED_ENV.values():
        monkeypatch.delenv(env, raising=False)
        monkeypatch.delenv(f"CHAINWORKER_{env}", raising=False)
    monkeypatch.setenv("CHAINWORKER_DATA_DIR", str(tmp_path / "logs"))

    assert main(["responder", "--once"]) == 1
    assert (tmp_path / "logs" / "responder.log").exists()
