# src/chainworker/cli/main.py

"""
CLI entrypoint.

Loads settings once, initializes logging, validates the required
configuration, wires the requested worker and runs its sweep loop until a
fatal error or SIGINT/SIGTERM. The loop itself never exits the process; this
module maps its WorkerExit to the exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Sequence

from ..config import ConfigError, Settings
from ..core.models import WorkerExit
from ..logging_setup import setup_logging
from .bootstrap import ROLES, WorkerRuntime, connect_ledger, create_worker

logger = logging.getLogger(__name__)


def build_parser(*, role: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=f"chainworker-{role}" if role else "chainworker",
        description="Poll the task registry contract, resolve pending work, commit results.",
    )
    if role is None:
        parser.add_argument("role", choices=ROLES, help="Worker role to run.")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sweep and exit instead of looping forever.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Console log level (default: LOG_LEVEL from the environment, else INFO).",
    )
    return parser


def _install_signal_handlers(task: asyncio.Task) -> None:
    loop = asyncio.get_running_loop()

    def _handle_signal(signum: int) -> None:
        logger.info("Signal %s received, shutting down...", signal.Signals(signum).name)
        task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except (NotImplementedError, RuntimeError):
            # Some platforms (Windows) have no loop signal handlers.
            pass


async def run_worker(runtime: WorkerRuntime, *, max_sweeps: int | None = None) -> WorkerExit:
    """Run the worker loop; a termination signal ends it cleanly."""
    current = asyncio.current_task()
    if current is not None:
        _install_signal_handlers(current)

    worker = runtime.worker
    try:
        return await worker.run(max_sweeps=max_sweeps)
    except asyncio.CancelledError:
        return WorkerExit(role=worker.role, sweeps=worker.sweeps)
    finally:
        await runtime.aclose()


def main(argv: Sequence[str] | None = None, *, role: str | None = None) -> int:
    args = build_parser(role=role).parse_args(argv)
    role = role or args.role

    settings = Settings.from_env()

    level_name = str(args.log_level or settings.log_level or "INFO").upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, log_name=role, console_level=console_level)

    try:
        settings.require()
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    logger.info("Starting %s %s...", settings.app_name, role)
    logger.debug("Settings: %s", settings.redacted())

    try:
        runtime = create_worker(role, settings, ledger_factory=connect_ledger)
    except Exception:
        logger.exception("Failed to start %s", role)
        return 1

    result = asyncio.run(run_worker(runtime, max_sweeps=1 if args.once else None))

    if result.ok:
        logger.info("Bye. (%s, %d sweeps)", result.role, result.sweeps)
    else:
        logger.error("%s exited after %d sweeps: %s", result.role, result.sweeps, result.error)
    return result.exit_code


def responder_main() -> None:
    sys.exit(main(role="responder"))


def updater_main() -> None:
    sys.exit(main(role="updater"))


if __name__ == "__main__":
    sys.exit(main())
