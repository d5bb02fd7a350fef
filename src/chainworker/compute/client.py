# src/chainworker/compute/client.py

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..core.errors import ComputeError
from ..core.models import FAIL_OUTPUT

logger = logging.getLogger(__name__)


def _make_timeout_obj(total_s: float, connect_s: float = 5.0) -> httpx.Timeout:
    return httpx.Timeout(total_s, connect=min(connect_s, total_s))


def decode_body(resp: httpx.Response) -> Any:
    """
    Decode a sandbox response body.

    JSON bodies are decoded whatever the content type; anything else is kept as text.
    """
    text = resp.text
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def canonical_output(value: Any) -> str:
    """
    Turn a sandbox result into the string committed on-chain.

    - strings are kept as-is
    - an empty body (None or "") becomes FAIL_OUTPUT
    - anything else is rendered as compact JSON
    """
    if value is None or value == "":
        return FAIL_OUTPUT
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class SandboxComputeEngine:
    """
    HTTP client for the local code execution sandbox (`POST /run`).

    Any transport error or non-2xx status is raised as ComputeError so the
    responder can leave the task pending for the next sweep.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=_make_timeout_obj(timeout_seconds),
        )

    async def run(self, code: str, inputs: Any) -> Any:
        try:
            resp = await self._client.post("/run", json={"code": code, "inputs": inputs})
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ComputeError(f"sandbox returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ComputeError(f"sandbox request failed: {e.__class__.__name__}: {e}") from e

        body = decode_body(resp)
        logger.debug("sandbox answered %s bytes", len(resp.content))
        return body

    async def aclose(self) -> None:
        await self._client.aclose()
