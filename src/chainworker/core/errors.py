# src/chainworker/core/errors.py

from __future__ import annotations


class FatalWorkerError(RuntimeError):
    """
    A failure the sweep must not continue past (discovery or detail queries).

    The worker has no local cache to fall back to, so instead of operating on a
    partial view of the ledger the run loop stops and reports this error.
    """

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"Error during {stage}: {cause!r}")
        self.stage = stage
        self.cause = cause


class ComputeError(RuntimeError):
    """The execution sandbox could not produce a result."""


class MalformedCompletion(ValueError):
    """The completion did not contain the expected JSON record."""
