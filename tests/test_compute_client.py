# tests/test_compute_client.py

from __future__ import annotations

import json

import httpx
import pytest

from chainworker.compute.client import SandboxComputeEngine, canonical_output
from chainworker.core.errors import ComputeError
from chainworker.core.models import FAIL_OUTPUT


def _engine(handler) -> SandboxComputeEngine:
    client = httpx.AsyncClient(base_url="http://sandbox", transport=httpx.MockTransport(handler))
    return SandboxComputeEngine("http://sandbox", client=client)


@pytest.mark.asyncio
async def test_posts_code_and_inputs_and_decodes_json() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"sum": 3})

    engine = _engine(handler)
    result = await engine.run("mainFunction = add;", {"a": 1, "b": 2})
    await engine.aclose()

    assert result == {"sum": 3}
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/run"
    assert json.loads(seen[0].content) == {"code": "mainFunction = add;", "inputs": {"a": 1, "b": 2}}


@pytest.mark.asyncio
async def test_plain_text_body_is_kept_as_text() -> None:
    engine = _engine(lambda request: httpx.Response(200, text="hello world"))

    assert await engine.run("c", {}) == "hello world"


@pytest.mark.asyncio
async def test_empty_body_decodes_to_none() -> None:
    engine = _engine(lambda request: httpx.Response(200))

    assert await engine.run("c", {}) is None


@pytest.mark.asyncio
async def test_http_error_status_raises_compute_error() -> None:
    engine = _engine(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(ComputeError, match="HTTP 500"):
        await engine.run("c", {})


@pytest.mark.asyncio
async def test_connection_error_raises_compute_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    engine = _engine(handler)

    with pytest.raises(ComputeError, match="ConnectError"):
        await engine.run("c", {})


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("plain", "plain"),
        (None, FAIL_OUTPUT),
        ("", FAIL_OUTPUT),
        (0, "0"),
        (False, "false"),
        (3.5, "3.5"),
        ([1, "two"], '[1,"two"]'),
        ({"msg": "héllo"}, '{"msg":"héllo"}'),
    ],
)
def test_canonical_output(value, expected) -> None:
    assert canonical_output(value) == expected
