# fairplay/llm/local_provider.py
"""
Local model provider for OpenAI-compatible servers (llama.cpp server, Ollama,
LM Studio).

The model is a single exclusive resource: calls are serialised with a lock so
the pipeline never has two generations in flight against the same server.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
from openai import APIConnectionError, APIError, AsyncOpenAI

from fairplay.errors import ModelError, ModelUnavailable
from fairplay.llm.base import LLMProvider
from fairplay.logging_config import log_llm_call

logger = logging.getLogger(__name__)


class LocalLLMProvider(LLMProvider):
    """Chat-completions client for a locally hosted model."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str = "sk-no-key-required",
        temperature: float = 0.3,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the local provider.

        Args:
            base_url: Server root including the API prefix, e.g. http://127.0.0.1:8080/v1
            model: Model name the server should use
            api_key: Ignored by local servers; the client requires a value
            temperature: Sampling temperature
            timeout: Per-request timeout in seconds. None waits indefinitely.
            http_client: Optional pre-built httpx client (tests inject a MockTransport)
        """
        self._model = model
        self._temperature = temperature
        self._http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            http_client=self._http_client,
            max_retries=0,
        )
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "local"

    @property
    def model_name(self) -> str:
        return self._model

    async def analyze(self, prompt: str, system_prompt: str) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ]
        return await self._chat_completion(messages, call_type="analyze")

    async def generate(self, prompt: str) -> str:
        return await self._chat_completion([{"role": "user", "content": prompt}], call_type="generate")

    async def _chat_completion(self, messages: list[dict], call_type: str) -> str:
        async with self._lock:
            with log_llm_call(self.name, self._model, call_type) as metrics:
                try:
                    response = await self._client.chat.completions.create(
                        model=self._model,
                        messages=messages,
                        temperature=self._temperature,
                    )
                except APIConnectionError as e:
                    raise ModelUnavailable(f"Local model server unreachable: {e}") from e
                except APIError as e:
                    raise ModelError(f"Model call failed: {e}") from e

                if not response.choices:
                    raise ModelError("Model returned no choices")
                content = response.choices[0].message.content or ""
                metrics["response_chars"] = len(content)
                return content

    async def close(self) -> None:
        await self._client.close()
