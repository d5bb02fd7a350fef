# src/chainworker/llm/client.py

from __future__ import annotations

import logging
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


def _is_auth_error(exc: BaseException) -> bool:
    return exc.__class__.__name__ in {
        "AuthenticationError",
        "PermissionDeniedError",
        "UnauthorizedError",
    }


def _is_rate_limit_error(exc: BaseException) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: BaseException) -> bool:
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "CallTimeout",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def describe_llm_error(err: BaseException) -> str:
    """Short log-friendly classification of a completion failure."""
    if _is_auth_error(err):
        return "authentication failed (check OPENAI_API_KEY)"
    if _is_rate_limit_error(err):
        return "rate-limited"
    if _is_connection_error(err):
        return "network/timeout error"
    return f"{err.__class__.__name__}: {err}"


def _make_timeout_obj(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


class OpenAICompletionClient:
    """
    Single-choice chat completion against an OpenAI-compatible endpoint.

    Automatic SDK retries are disabled: a failed item is simply picked up
    again by the next sweep.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str,
        max_tokens: int = 150,
        timeout_seconds: float = 60.0,
        client: Any | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise RuntimeError("LLM API key is not set. Set OPENAI_API_KEY in your .env.")

        self._model = model
        self._max_tokens = int(max_tokens)
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=_make_timeout_obj(connect_s=5.0, read_s=timeout_seconds),
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, prompt: str) -> str:
        """Send one user message, return the first choice's message content."""
        resp = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self._max_tokens,
            n=1,
        )
        if not resp.choices:
            raise RuntimeError(f"Model returned no choices: {self._model}")

        content = resp.choices[0].message.content
        if content is None:
            raise RuntimeError(f"Model returned no content: {self._model}")

        logger.debug("LLM: completion from model=%s len=%d", self._model, len(content))
        return content

    async def aclose(self) -> None:
        await self._client.close()
