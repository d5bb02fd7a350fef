# src/chainworker/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One immutable Settings object, built once at process start and passed
  explicitly into the workers.
- No secrets required at import time; `Settings.require()` validates them.
- Each variable is read as CHAINWORKER_<NAME> first, then plain <NAME>.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import dotenv

ENV_PREFIX = "CHAINWORKER"

REQUIRED_ENV = {
    "ledger_url": "RPC_URL",
    "contract_address": "CONTRACT_ADDRESS",
    "mnemonic": "MNEMONIC",
    "openai_api_key": "OPENAI_API_KEY",
}


class ConfigError(RuntimeError):
    """Required configuration is missing or invalid."""


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv() -> None:
    """Load .env from the working directory (or a parent). Real env vars win."""
    dotenv.load_dotenv(dotenv.find_dotenv(usecwd=True), override=False)


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v.strip()
    return default


def _env(suffix: str, default: str) -> str:
    return _first_env(_k(suffix), suffix, default=default) or default


def _env_int(suffix: str, default: int) -> int:
    raw = _first_env(_k(suffix), suffix)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(suffix: str, default: float) -> float:
    raw = _first_env(_k(suffix), suffix)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(suffix: str, default: Path) -> Path:
    raw = _first_env(_k(suffix), suffix)
    if raw is None:
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Ledger / signer ----
    ledger_url: str
    chain_id: str
    contract_address: str
    mnemonic: str
    address_prefix: str
    gas_price: str
    gas_limit: int

    # ---- Compute sandbox ----
    compute_url: str

    # ---- Completion service ----
    openai_api_key: str
    openai_base_url: str
    llm_model: str
    llm_max_tokens: int

    # ---- Loop / timeouts (seconds) ----
    sweep_interval_seconds: float
    query_timeout_seconds: float
    compute_timeout_seconds: float
    completion_timeout_seconds: float
    tx_timeout_seconds: float

    @staticmethod
    def from_env(*, load_dotenv: bool = True) -> "Settings":
        if load_dotenv:
            _load_dotenv()

        return Settings(
            app_name=_env("APP_NAME", "chainworker"),
            log_level=_env("LOG_LEVEL", "INFO"),
            data_dir=_env_path("DATA_DIR", Path(".local/chainworker")),
            ledger_url=_env("RPC_URL", ""),
            chain_id=_env("CHAIN_ID", "archway-1"),
            contract_address=_env("CONTRACT_ADDRESS", ""),
            mnemonic=_env("MNEMONIC", ""),
            address_prefix=_env("ADDRESS_PREFIX", "archway"),
            gas_price=_env("GAS_PRICE", "140000000000aarch"),
            gas_limit=_env_int("GAS_LIMIT", 300_000),
            compute_url=_env("COMPUTE_URL", "http://localhost:3327"),
            openai_api_key=_env("OPENAI_API_KEY", ""),
            openai_base_url=_env("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            llm_model=_env("LLM_MODEL", "gpt-4o-mini"),
            llm_max_tokens=_env_int("LLM_MAX_TOKENS", 150),
            sweep_interval_seconds=_env_float("SWEEP_INTERVAL_SECONDS", 20.0),
            query_timeout_seconds=_env_float("QUERY_TIMEOUT_SECONDS", 60.0),
            compute_timeout_seconds=_env_float("COMPUTE_TIMEOUT_SECONDS", 60.0),
            completion_timeout_seconds=_env_float("COMPLETION_TIMEOUT_SECONDS", 60.0),
            tx_timeout_seconds=_env_float("TX_TIMEOUT_SECONDS", 60.0),
        )

    def missing_required(self) -> list[str]:
        """Env names of required settings that are empty."""
        return [env for field, env in REQUIRED_ENV.items() if not getattr(self, field)]

    def require(self) -> "Settings":
        """
        Validate the settings every worker needs before it touches the network.

        Raises ConfigError listing all missing variables at once.
        """
        missing = self.missing_required()
        if missing:
            raise ConfigError("Missing required environment variables: " + ", ".join(missing))
        if self.gas_limit <= 0:
            raise ConfigError(f"GAS_LIMIT must be positive, got {self.gas_limit}")
        return self

    def redacted(self) -> dict[str, object]:
        """Settings as a dict safe for logging (secrets masked)."""
        out: dict[str, object] = {}
        for f in fields(self):
            name = f.name
            value = getattr(self, name)
            if name in ("mnemonic", "openai_api_key"):
                value = "***" if value else ""
            out[name] = str(value) if isinstance(value, Path) else value
        return out
