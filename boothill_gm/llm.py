"""LLM transport — where raw Game Master text comes from.

The service layer depends only on this protocol:

    async def __call__(self, stage: str, prompt: str) -> str: ...

`stage` names the caller ("game_master", "character"). Implementations may use
it for logging or routing; the simplest ignore it.

    HttpLLM    — real HTTP client for KoboldCpp or OpenAI-compatible
                 text-completion backends, chosen by provider_format.
    ReplayLLM  — returns recorded responses in order. No network; lets you
                 run logged model output back through the parser.

Every transport failure surfaces as LLMError; nothing else escapes HttpLLM.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal, Protocol

import httpx

logger = logging.getLogger(__name__)


class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str) -> str: ...


ProviderFormat = Literal["koboldcpp", "openai"]


class HttpLLM:
    """Async HTTP client for text-completion backends.

    Supported formats:
      "koboldcpp"  — POST /api/v1/generate  {"prompt", "max_length"}
                     Response: {"results": [{"text": "..."}]}
      "openai"     — POST /v1/completions   {"model", "prompt", "max_tokens"}
                     Response: {"choices": [{"text": "..."}]}

    Args:
        provider_url:    Base URL of the backend, e.g. "http://localhost:5001".
        api_key:         Bearer token, or empty string if not required.
        provider_format: Wire format. Defaults to "koboldcpp".
        model:           Model identifier, sent only in the openai format.
        timeout:         HTTP timeout in seconds.
        max_tokens:      Completion length cap, 0 to leave it to the backend.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "koboldcpp",
        model: str = "",
        timeout: float = 120.0,
        max_tokens: int = 0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout
        self._max_tokens = max_tokens

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, prompt: str) -> tuple[str, dict]:
        if self._format == "openai":
            body: dict = {"prompt": prompt}
            if self._model:
                body["model"] = self._model
            if self._max_tokens:
                body["max_tokens"] = self._max_tokens
            return f"{self._base_url}/v1/completions", body

        body = {"prompt": prompt}
        if self._max_tokens:
            body["max_length"] = self._max_tokens
        return f"{self._base_url}/api/v1/generate", body

    def _extract_text(self, data: object) -> str:
        key = "choices" if self._format == "openai" else "results"
        entries = data.get(key) if isinstance(data, dict) else None
        if not entries or not isinstance(entries[0], dict) or "text" not in entries[0]:
            raise LLMError(f"Unexpected response format from {self._format} backend")
        return entries[0]["text"]

    async def __call__(self, stage: str, prompt: str) -> str:
        url, body = self._build_request(prompt)
        logger.debug("llm call stage=%s url=%s prompt_len=%d", stage, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(f"LLM backend returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e
        text = self._extract_text(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


class ReplayLLM:
    """Plays back recorded model responses, one per call.

    Raises LLMError once the recording is exhausted, the same way a dead
    backend would.
    """

    def __init__(self, responses: Iterable[str]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, stage: str, prompt: str) -> str:
        self.calls.append((stage, prompt))
        if not self._responses:
            raise LLMError("ReplayLLM has no recorded responses left")
        logger.debug("ReplayLLM stage=%s remaining=%d", stage, len(self._responses) - 1)
        return self._responses.pop(0)


class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
