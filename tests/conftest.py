# tests/conftest.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from chainworker.config import Settings

from .fakes import FakeCompletion, FakeCompute, FakeLedger, RecordingSleep, make_item


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Fully populated Settings built directly (not from the environment),
    to keep unit tests isolated and deterministic.
    """
    return Settings(
        app_name="chainworker",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        ledger_url="rest+http://127.0.0.1:1317",
        chain_id="localnet-1",
        contract_address="archway1contract",
        mnemonic="test test test test test test test test test test test junk",
        address_prefix="archway",
        gas_price="140000000000aarch",
        gas_limit=300_000,
        compute_url="http://127.0.0.1:3327",
        openai_api_key="sk-test",
        openai_base_url="http://127.0.0.1:9/v1",
        llm_model="gpt-4o-mini",
        llm_max_tokens=150,
        sweep_interval_seconds=20.0,
        query_timeout_seconds=1.0,
        compute_timeout_seconds=1.0,
        completion_timeout_seconds=1.0,
        tx_timeout_seconds=1.0,
    )


@pytest.fixture()
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def three_items_ledger() -> FakeLedger:
    """Item 0 has two pending tasks, item 1 none, item 2 one."""
    return FakeLedger(
        [
            make_item("0", ["t1", "t2"]),
            make_item("1", []),
            make_item("2", ["t3"]),
        ]
    )


@pytest.fixture()
def compute() -> FakeCompute:
    return FakeCompute("42")


@pytest.fixture()
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture()
def restore_root_logging():
    """setup_logging() replaces root handlers; put them back after the test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        if h not in handlers:
            h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
